import tempfile
import unittest
from pathlib import Path

from tiny_yolo_kit.metadata import load_labels


class TestLoadLabels(unittest.TestCase):
    def _write(self, name: str, text: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / name
        path.write_bytes(text.encode("utf-8"))
        return path

    def test_newline_delimited(self) -> None:
        path = self._write("coco.names", "person\nbicycle\ncar\n")
        self.assertEqual(load_labels(path), ("person", "bicycle", "car"))

    def test_crlf_and_trailing_blank_lines(self) -> None:
        path = self._write("labels.txt", "person\r\ntraffic light\r\n\r\n")
        self.assertEqual(load_labels(path), ("person", "traffic light"))

    def test_yaml_names_mapping(self) -> None:
        text = "# exported\nnames:\n  0: person\n  1: 'bicycle'\n  2: \"car\"\n"
        self.assertEqual(load_labels(self._write("metadata.yaml", text)), ("person", "bicycle", "car"))

    def test_yaml_ids_must_be_contiguous(self) -> None:
        with self.assertRaises(ValueError):
            load_labels(self._write("metadata.yaml", "names:\n  0: person\n  2: car\n"))

    def test_empty_file(self) -> None:
        with self.assertRaises(ValueError):
            load_labels(self._write("empty.names", "\n\n"))

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_labels(Path(tempfile.gettempdir()) / "no-such-labels.names")


if __name__ == "__main__":
    unittest.main()
