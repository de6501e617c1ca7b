import asyncio

import pytest

from file_converter.detection import sniff_format
from file_converter.errors import UnsupportedConversion
from file_converter.jobs import InvalidJobTransition, JobBoard, JobNotFound, JobStatus
from file_converter.models import SourceFile


def test_intake_accepts_classified_files_with_default_target(sources, app_config):
    board = JobBoard(app_config)
    intake = board.add_files(
        [sources["png"], sources["xlsx"], SourceFile("archive.zip", "application/zip", b"PK")]
    )
    assert [job.source.name for job in intake.accepted] == ["photo.png", "table.xlsx"]
    assert intake.rejected == {"archive.zip": "UNSUPPORTED_FORMAT"}
    assert [job.target for job in intake.accepted] == ["image/jpeg", "application/pdf"]
    assert all(job.status is JobStatus.PENDING for job in board.jobs)


def test_intake_rejects_oversized_files(app_config):
    app_config.runtime.max_file_size_mb = 0
    board = JobBoard(app_config)
    intake = board.add_files([SourceFile("notes.txt", "text/plain", b"hello")])
    assert intake.rejected == {"notes.txt": "SIZE_LIMIT"}
    assert len(board) == 0


def test_common_and_global_targets(sources, app_config):
    board = JobBoard(app_config)
    board.add_files([sources["docx"], sources["xlsx"], sources["png"]])
    assert [entry.mime_type for entry in board.common_targets()] == ["application/pdf"]

    updated = board.apply_global_target("text/html")
    assert {job.source.name for job in updated} == {"report.docx", "table.xlsx"}
    png_job = next(job for job in board.jobs if job.source.name == "photo.png")
    assert png_job.target == "image/jpeg"


def test_set_target_validates_compatibility(sources, app_config):
    board = JobBoard(app_config)
    job = board.add_files([sources["csv"]]).accepted[0]
    assert board.set_target(job.job_id, "text/csv").target == "text/csv"
    with pytest.raises(UnsupportedConversion):
        board.set_target(job.job_id, "image/png")
    with pytest.raises(JobNotFound):
        board.get("missing")


def test_convert_all_reaches_terminal_states(sources, app_config, tmp_path):
    board = JobBoard(app_config)
    ok, broken = board.add_files(
        [sources["png"], SourceFile("empty.tiff", "image/tiff", b"II*\x00\x00\x00\x00\x00")]
    ).accepted
    board.set_target(broken.job_id, "image/png")

    finished = asyncio.run(board.convert_all())

    assert {job.job_id for job in finished} == {ok.job_id, broken.job_id}
    assert ok.status is JobStatus.DONE
    assert sniff_format(ok.result) == "image/jpeg"
    assert ok.download_name == "photo_converted.jpg"
    assert broken.status is JobStatus.ERROR
    assert broken.result is None
    assert broken.error_code == "DECODE_ERROR"
    assert broken.download_name is None

    saved = board.save(ok.job_id, tmp_path / "downloads")
    assert saved.name == "photo_converted.jpg"
    assert saved.read_bytes() == ok.result
    with pytest.raises(InvalidJobTransition):
        board.save(broken.job_id, tmp_path / "downloads")


def test_terminal_states_are_final(sources, app_config):
    board = JobBoard(app_config)
    job = board.add_files([sources["csv"]]).accepted[0]
    board.set_target(job.job_id, "text/csv")
    asyncio.run(board.convert_all())
    assert job.status is JobStatus.DONE
    with pytest.raises(InvalidJobTransition):
        job.start()
    with pytest.raises(InvalidJobTransition):
        job.fail("DECODE_ERROR", "late failure")
    with pytest.raises(InvalidJobTransition):
        board.set_target(job.job_id, "text/html")
    assert asyncio.run(board.convert_all()) == []


def test_remove_and_clear(sources, app_config):
    board = JobBoard(app_config)
    first, second = board.add_files([sources["png"], sources["txt"]]).accepted
    board.remove(first.job_id)
    assert [job.job_id for job in board.jobs] == [second.job_id]
    board.clear()
    assert len(board) == 0


def test_convert_all_skips_jobs_without_target(sources, app_config):
    board = JobBoard(app_config)
    untargeted, targeted = board.add_files([sources["txt"], sources["csv"]]).accepted
    untargeted.target = None
    board.set_target(targeted.job_id, "text/csv")

    finished = asyncio.run(board.convert_all())

    assert [job.job_id for job in finished] == [targeted.job_id]
    assert targeted.status is JobStatus.DONE
    assert targeted.result == b"a,b\n1,2\n"
    assert untargeted.status is JobStatus.PENDING
    assert untargeted.result is None
