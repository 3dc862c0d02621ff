import json
import tempfile
import unittest
from pathlib import Path

from tiny_yolo_kit.config import DEFAULT_ANCHORS, TinyYoloConfig, load_config, validate_labels


class TestTinyYoloConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = TinyYoloConfig()
        self.assertEqual(cfg.confidence_threshold, 0.25)
        self.assertEqual(cfg.iou_threshold, 0.45)
        self.assertEqual(cfg.input_resolution, 640)
        self.assertEqual(cfg.anchors[3], (81.0, 82.0))
        self.assertEqual(cfg.channels_for(80), 255)

    def test_grid_for_anchor(self) -> None:
        cfg = TinyYoloConfig()
        self.assertEqual([cfg.grid_for_anchor(i) for i in range(6)], [40, 40, 40, 20, 20, 20])
        with self.assertRaises(ValueError):
            cfg.grid_for_anchor(-1)

    def test_confidence_threshold_accepts_raw_logit_range(self) -> None:
        for value in (-1.0, 1.5, 0.0):
            with self.subTest(value=value):
                self.assertEqual(TinyYoloConfig(confidence_threshold=value).confidence_threshold, value)

    def test_invalid_values(self) -> None:
        bad = [
            {"confidence_threshold": float("nan")},
            {"confidence_threshold": float("inf")},
            {"iou_threshold": -0.1},
            {"input_resolution": 0},
            {"coarse_grid": 0},
            {"anchors": DEFAULT_ANCHORS[:5]},
            {"anchors": DEFAULT_ANCHORS[:5] + ((0.0, 10.0),)},
            {"output_layout": "chw"},
        ]
        for kwargs in bad:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValueError):
                    TinyYoloConfig(**kwargs)


class TestValidateLabels(unittest.TestCase):
    def test_ok(self) -> None:
        self.assertEqual(validate_labels(["a", "b"]), ("a", "b"))

    def test_rejects_empty_and_strings(self) -> None:
        for labels in ([], "person", ["a", 3]):
            with self.subTest(labels=labels):
                with self.assertRaises(ValueError):
                    validate_labels(labels)


class TestLoadConfig(unittest.TestCase):
    def _write(self, payload) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "detector.json"
        text = payload if isinstance(payload, str) else json.dumps(payload)
        path.write_text(text, encoding="utf-8")
        return path

    def test_load_ok(self) -> None:
        path = self._write(
            {
                "confidence_threshold": 0.5,
                "iou_threshold": 0.3,
                "input_resolution": 416,
                "coarse_grid": 13,
                "fine_grid": 26,
                "anchors": [[10, 14], [23, 27], [37, 58], [81, 82], [135, 169], [344, 319]],
                "output_layout": "nchw",
                "legacy_iou": True,
            }
        )
        cfg = load_config(path)
        self.assertEqual(cfg.confidence_threshold, 0.5)
        self.assertEqual(cfg.coarse_grid, 13)
        self.assertEqual(cfg.anchors, DEFAULT_ANCHORS)
        self.assertEqual(cfg.output_layout, "nchw")
        self.assertTrue(cfg.legacy_iou)
        self.assertFalse(cfg.keep_highest_score)

    def test_empty_object_gives_defaults(self) -> None:
        self.assertEqual(load_config(self._write({})), TinyYoloConfig())

    def test_unknown_keys_rejected(self) -> None:
        with self.assertRaises(ValueError):
            load_config(self._write({"conf": 0.5}))

    def test_wrong_types_rejected(self) -> None:
        for payload in (
            {"confidence_threshold": True},
            {"input_resolution": 640.5},
            {"legacy_iou": "yes"},
            {"anchors": [[10, 14]] * 5 + [[1, "x"]]},
            {"fine_output_name": ""},
        ):
            with self.subTest(payload=payload):
                with self.assertRaises(ValueError):
                    load_config(self._write(payload))

    def test_invalid_json(self) -> None:
        with self.assertRaises(ValueError):
            load_config(self._write("{not json"))
        with self.assertRaises(ValueError):
            load_config(self._write("[1, 2]"))

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config(Path(tempfile.gettempdir()) / "does-not-exist-detector.json")


if __name__ == "__main__":
    unittest.main()
