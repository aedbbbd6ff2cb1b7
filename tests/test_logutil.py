import logging

from grpcrsgen.logutil import init_log


def test_log_to_file(tmp_path):
    path = tmp_path / "bench.log"
    guard = init_log(str(path))
    logging.getLogger("bench").info("listening on %s:%d", "[::]", 8080)
    guard.close()
    content = path.read_text(encoding="utf-8")
    assert "listening on [::]:8080" in content
    assert "INFO" in content


def test_file_created_even_without_records(tmp_path):
    path = tmp_path / "empty.log"
    with init_log(str(path)):
        pass
    assert path.read_text(encoding="utf-8") == ""


def test_file_is_truncated(tmp_path):
    path = tmp_path / "old.log"
    path.write_text("stale line\n", encoding="utf-8")
    with init_log(str(path)):
        logging.getLogger("bench").warning("fresh line")
    content = path.read_text(encoding="utf-8")
    assert "stale line" not in content
    assert "fresh line" in content


def test_log_to_terminal(capsys):
    with init_log(None):
        logging.getLogger("bench").error("server shutdown failed")
    assert "server shutdown failed" in capsys.readouterr().err


def test_close_removes_handler_and_restores_level(tmp_path):
    root = logging.getLogger()
    handlers_before = list(root.handlers)
    level_before = root.level
    path = tmp_path / "x.log"
    guard = init_log(str(path))
    logging.getLogger("bench").info("while installed")
    guard.close()
    assert "while installed" in path.read_text(encoding="utf-8")
    assert root.handlers == handlers_before
    assert root.level == level_before


def test_records_after_close_not_written(tmp_path):
    path = tmp_path / "closed.log"
    guard = init_log(str(path))
    guard.close()
    guard.close()
    logging.getLogger("bench").error("after close")
    assert "after close" not in path.read_text(encoding="utf-8")