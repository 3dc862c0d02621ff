import importlib.util
import tempfile
import unittest
from pathlib import Path

from tiny_yolo_kit.pipeline import asset_root, load_pipeline, resolve_path

HAS_ORT = importlib.util.find_spec("onnxruntime") is not None


class TestLoadPipeline(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name)
        (self.root / "coco.names").write_text("person\ncar\n", encoding="utf-8")

    def test_rejects_non_onnx_model(self) -> None:
        with self.assertRaises(ValueError):
            load_pipeline("yolov3-tiny.nn", "coco.names", root=self.root)

    def test_missing_labels(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_pipeline("yolov3-tiny.onnx", "missing.names", root=self.root)

    @unittest.skipUnless(HAS_ORT, "onnxruntime not installed")
    def test_missing_model(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_pipeline("yolov3-tiny.onnx", "coco.names", root=self.root)

    def test_resolve_path(self) -> None:
        self.assertEqual(resolve_path("a/b.onnx", root=self.root), (self.root / "a" / "b.onnx").resolve())
        absolute = self.root / "c.onnx"
        self.assertEqual(resolve_path(absolute), absolute)

    def test_asset_root_finds_models_folder(self) -> None:
        (self.root / "Models").mkdir()
        nested = self.root / "runs" / "today"
        nested.mkdir(parents=True)
        self.assertEqual(asset_root(nested), self.root.resolve())
        label_file = self.root / "coco.names"
        self.assertEqual(asset_root(label_file), self.root.resolve())


if __name__ == "__main__":
    unittest.main()
