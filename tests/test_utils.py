import os
import time

from file_converter.utils import atomic_write, generate_run_id, iter_files, prune_runs, slugify


def test_slugify_basic() -> None:
    assert slugify("Hello World!.pdf") == "Hello-World.pdf"
    assert slugify("???") == "file"


def test_generate_run_id_unique() -> None:
    first = generate_run_id("test")
    second = generate_run_id("test")
    assert first != second
    assert first.startswith("test-")


def test_atomic_write_accepts_bytes_and_text(tmp_path) -> None:
    target = tmp_path / "nested" / "out.bin"
    atomic_write(target, b"\x00\x01")
    assert target.read_bytes() == b"\x00\x01"
    atomic_write(target, "text")
    assert target.read_text(encoding="utf-8") == "text"


def test_iter_files_walks_directories(tmp_path) -> None:
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.txt").write_text("b")
    (tmp_path / "a.txt").write_text("a")
    found = [path.name for path in iter_files([tmp_path])]
    assert found == ["a.txt", "b.txt"]


def test_prune_runs_keeps_newest(tmp_path) -> None:
    now = time.time()
    for index in range(3):
        run_dir = tmp_path / f"run-{index}"
        run_dir.mkdir()
        os.utime(run_dir, (now - 1000 * (3 - index), now - 1000 * (3 - index)))
    (tmp_path / "summary.csv").write_text("header\n")

    removed = prune_runs(tmp_path, keep=1)

    assert sorted(path.name for path in removed) == ["run-0", "run-1"]
    assert (tmp_path / "run-2").exists()
    assert (tmp_path / "summary.csv").exists()


def test_prune_runs_by_age(tmp_path) -> None:
    old = tmp_path / "old"
    old.mkdir()
    os.utime(old, (time.time() - 10 * 86400, time.time() - 10 * 86400))
    (tmp_path / "fresh").mkdir()
    removed = prune_runs(tmp_path, older_than_s=86400)
    assert [path.name for path in removed] == ["old"]
