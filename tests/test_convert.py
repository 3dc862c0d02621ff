import math
import unittest
import warnings

import numpy as np

from tiny_yolo_kit.config import TinyYoloConfig
from tiny_yolo_kit.convert import convert_boxes, sigmoid
from tiny_yolo_kit.types import RawBox


def raw(anchor_index, cell_x, cell_y, tx=0.0, ty=0.0, tw=0.0, th=0.0, label="person", confidence=0.5):
    return RawBox(
        tx=tx,
        ty=ty,
        tw=tw,
        th=th,
        label=label,
        anchor_index=anchor_index,
        cell_x=cell_x,
        cell_y=cell_y,
        confidence=confidence,
    )


class TestSigmoid(unittest.TestCase):
    def test_values(self) -> None:
        self.assertEqual(sigmoid(0.0), 0.5)
        self.assertAlmostEqual(sigmoid(2.0), 1.0 / (1.0 + math.exp(-2.0)))
        self.assertAlmostEqual(sigmoid(-2.0), 1.0 / (1.0 + math.exp(2.0)))

    def test_saturates_without_overflow(self) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            self.assertEqual(sigmoid(1000.0), 1.0)
            self.assertEqual(sigmoid(-1000.0), 0.0)

    def test_array_input(self) -> None:
        out = sigmoid(np.array([-1.0, 0.0, 1.0]))
        self.assertEqual(out.shape, (3,))
        self.assertAlmostEqual(float(out[0] + out[2]), 1.0)


class TestConvertBoxes(unittest.TestCase):
    def test_coarse_cell_center_scenario(self) -> None:
        (box,) = convert_boxes([raw(anchor_index=3, cell_x=10, cell_y=10)], TinyYoloConfig())
        self.assertAlmostEqual(box.x, 16.5)
        self.assertAlmostEqual(box.y, 16.5)
        self.assertAlmostEqual(box.width, 81.0)
        self.assertAlmostEqual(box.height, 82.0)
        self.assertEqual(box.label, "person")

    def test_fine_grid_pitch(self) -> None:
        (box,) = convert_boxes([raw(anchor_index=0, cell_x=0, cell_y=39)], TinyYoloConfig())
        # pitch 16: -320 + 8 + 16 * cell + 0.5
        self.assertAlmostEqual(box.x, -311.5)
        self.assertAlmostEqual(box.y, -320 + 8 + 16 * 39 + 0.5)
        self.assertAlmostEqual(box.width, 10.0)
        self.assertAlmostEqual(box.height, 14.0)

    def test_exponential_size(self) -> None:
        (box,) = convert_boxes([raw(anchor_index=5, cell_x=0, cell_y=0, tw=1.0, th=-1.0)], TinyYoloConfig())
        self.assertAlmostEqual(box.width, 344.0 * math.e, places=4)
        self.assertAlmostEqual(box.height, 319.0 / math.e, places=4)

    def test_extreme_sizes_are_not_clamped(self) -> None:
        (box,) = convert_boxes([raw(anchor_index=1, cell_x=0, cell_y=0, tw=1000.0)], TinyYoloConfig())
        self.assertTrue(math.isinf(box.width))
        self.assertAlmostEqual(box.height, 27.0)

    def test_order_and_fields_preserved(self) -> None:
        boxes = [
            raw(anchor_index=4, cell_x=1, cell_y=2, label="car", confidence=0.3),
            raw(anchor_index=1, cell_x=3, cell_y=4, label="dog", confidence=0.8),
        ]
        out = convert_boxes(boxes, TinyYoloConfig())
        self.assertEqual([b.label for b in out], ["car", "dog"])
        self.assertEqual([b.confidence for b in out], [0.3, 0.8])

    def test_custom_resolution(self) -> None:
        cfg = TinyYoloConfig(input_resolution=416, coarse_grid=13, fine_grid=26)
        (box,) = convert_boxes([raw(anchor_index=3, cell_x=6, cell_y=6)], cfg)
        self.assertAlmostEqual(box.x, -208 + 16 + 32 * 6 + 0.5)

    def test_empty(self) -> None:
        self.assertEqual(convert_boxes([], TinyYoloConfig()), [])

    def test_bad_anchor_index(self) -> None:
        with self.assertRaises(ValueError):
            convert_boxes([raw(anchor_index=6, cell_x=0, cell_y=0)], TinyYoloConfig())


if __name__ == "__main__":
    unittest.main()
