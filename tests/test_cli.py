import json
import logging
from pathlib import Path

from usfmjson import parse_usfm
from usfmjson.cli import expand_paths, main


def _write(path: Path, text: str, encoding: str = "utf-8") -> str:
    path.write_text(text, encoding=encoding)
    return str(path)


class TestCli:
    def test_single_file(self, tmp_path: Path, titus: str, capsys) -> None:
        """Test one USFM file is printed as one JSON document."""
        file_path = _write(tmp_path / "57-TIT.usfm", titus, encoding="utf-8-sig")
        assert main([file_path]) == 0
        assert json.loads(capsys.readouterr().out) == parse_usfm(titus).to_json()

    def test_multiple_files(self, tmp_path: Path, titus: str) -> None:
        """Test several files are keyed by file name."""
        first = _write(tmp_path / "a.usfm", titus)
        second = _write(tmp_path / "b.usfm", "\\id PHM\n\\c 1\n\\v 1 Paul\n")
        output = tmp_path / "out.json"
        assert main([str(tmp_path / "*.usfm"), "-o", str(output), "-p"]) == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert sorted(data) == [first, second]
        assert data[second]["chapters"]["1"]["1"]["verseObjects"] == [{"type": "text", "text": "Paul\n"}]

    def test_chunk_and_content_source(self, tmp_path: Path, capsys) -> None:
        file_path = _write(tmp_path / "chunk.usfm", '\\v 1 \\w a|x-occurrence="1"\\w*')
        assert main([file_path, "--chunk", "--content-source", "UGNT", "--convert-to-int", "occurrence", "-d"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["verses"]["1"]["verseObjects"] == [
            {"text": "a", "tag": "w", "type": "word", "content-source": "UGNT", "occurrence": 1}
        ]

    def test_to_usfm(self, tmp_path: Path, titus: str, capsys) -> None:
        """Test JSON documents are written back as USFM."""
        file_path = _write(tmp_path / "tit.json", json.dumps(parse_usfm(titus).to_json(), ensure_ascii=False))
        assert main(["--to-usfm", file_path]) == 0
        assert capsys.readouterr().out == titus

    def test_failed_file(self, tmp_path: Path, caplog, capsys) -> None:
        """Test a missing file is reported while the others are converted."""
        good = _write(tmp_path / "good.usfm", "\\c 1\n\\v 1 a")
        missing = str(tmp_path / "missing.usfm")
        with caplog.at_level(logging.ERROR):
            assert main([good, missing, "--debug"]) == 1
        assert "missing.usfm" in caplog.text
        assert list(json.loads(capsys.readouterr().out)) == [good]

    def test_bad_json(self, tmp_path: Path, caplog) -> None:
        file_path = _write(tmp_path / "bad.json", '{"headers": [{"text": "x"}]}')
        with caplog.at_level(logging.ERROR):
            assert main(["--to-usfm", file_path]) == 1
        assert "ValueError" in caplog.text

    def test_milestone_without_tag(self, tmp_path: Path, caplog, capsys) -> None:
        """Test a malformed JSON file is reported while the others are written."""
        bad_document = {"chapters": {"1": {"1": {"verseObjects": [{"type": "milestone"}]}}}}
        bad = _write(tmp_path / "bad.json", json.dumps(bad_document))
        good = _write(tmp_path / "good.json", json.dumps(parse_usfm("\\c 1\n\\v 1 a\n").to_json()))
        with caplog.at_level(logging.ERROR):
            assert main(["--to-usfm", "--debug", bad, good]) == 1
        assert "Milestone without a tag" in caplog.text
        assert capsys.readouterr().out == "\\c 1\n\\v 1 a\n"

    def test_expand_paths(self, tmp_path: Path) -> None:
        _write(tmp_path / "b.usfm", "")
        _write(tmp_path / "a.usfm", "")
        assert expand_paths([str(tmp_path / "*.usfm"), "nothing.usfm"]) == [
            str(tmp_path / "a.usfm"),
            str(tmp_path / "b.usfm"),
            "nothing.usfm",
        ]
