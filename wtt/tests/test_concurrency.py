"""Concurrent callers sharing one store."""
import threading

from wtt.utils.exceptions import NotFoundError


def test_concurrent_creates_and_deletes_stay_consistent(store, acme):
    roots = [store.create_project(acme.id, {"title": f"Root{i}"}) for i in range(4)]
    errors = []

    def build(root_id):
        try:
            parent = root_id
            for depth in range(25):
                child = store.create_subproject(acme.id, parent, {"title": f"L{depth}"})
                store.add_resource_ref(acme.id, child.id, {"resource_id": "res-42"})
                parent = child.id
        except NotFoundError:
            # the root may already have been deleted by the other thread
            pass
        except Exception as e:
            errors.append(e)

    def prune():
        try:
            store.delete_project(acme.id, roots[0].id)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=build, args=(r.id,)) for r in roots]
    threads.append(threading.Thread(target=prune))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    store.verify_integrity()
    assert store.count_projects(acme.id) == 3
    sizes = store.index_sizes()
    assert sizes["projects"] == 3 + 3 * 25
    assert sizes["resources"] == 3 * 25
