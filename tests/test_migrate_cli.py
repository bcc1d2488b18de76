from fled_notify.core.identity import normalize_email
from fled_notify.scripts.migrate_parents import main
from tests.fakes import InMemoryStore, add_parent


def seeded_store():
    store = InMemoryStore()
    add_parent(store, "jane@home.test", doc_id="a", name="Jane")
    add_parent(store, "JANE@home.test", doc_id="b", linkedStudentIds=["s1"])
    return store


def test_missing_credentials_exits_1(tmp_path, capsys):
    code = main(["--credentials", str(tmp_path / "absent.json")])

    assert code == 1
    assert "Service account JSON not found" in capsys.readouterr().err


def test_dry_run_prints_plan_and_exits_0(capsys):
    store = seeded_store()

    code = main([], store=store)

    out = capsys.readouterr().out
    assert code == 0
    assert "Found 2 parent docs" in out
    assert f"Canonical id: {normalize_email('jane@home.test')}" in out
    assert "parents/a" in store.docs


def test_apply_merges(capsys):
    store = seeded_store()
    key = normalize_email("jane@home.test")

    code = main(["--apply"], store=store)

    assert code == 0
    assert set(store.docs) == {f"parents/{key}"}
    assert "Merged: 1, failed: 0" in capsys.readouterr().out


def test_failed_group_exits_2(capsys):
    store = seeded_store()
    store.fail("set", f"parents/{normalize_email('jane@home.test')}")

    code = main(["--apply"], store=store)

    assert code == 2
    assert "FAILED" in capsys.readouterr().out


def test_unreadable_store_exits_1():
    store = InMemoryStore()
    store.fail("stream", "parents")

    assert main([], store=store) == 1
