import argparse
import dataclasses
import logging

import cv2

from tiny_yolo_kit import TinyYoloConfig, draw_pixel_boxes, load_config, load_pipeline


def build_config(args: argparse.Namespace) -> TinyYoloConfig:
    cfg = load_config(args.config) if args.config else TinyYoloConfig()
    overrides = {}
    if args.conf is not None:
        overrides["confidence_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if args.layout is not None:
        overrides["input_layout"] = args.layout
        overrides["output_layout"] = args.layout
    if args.legacy_iou:
        overrides["legacy_iou"] = True
    if args.keep_highest_score:
        overrides["keep_highest_score"] = True
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a YOLOv3-tiny model and draw the decoded boxes.")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--image", default=None, help="Path to an input image.")
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")
    parser.add_argument("--model", default="Models/yolov3-tiny.onnx", help="Path to the ONNX model.")
    parser.add_argument("--labels", default="Models/coco.names", help="Newline-delimited class names.")
    parser.add_argument("--config", default=None, help="Optional JSON detector config.")
    parser.add_argument("--conf", type=float, default=None, help="Objectness threshold.")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for suppression.")
    parser.add_argument("--layout", choices=("nhwc", "nchw"), default=None, help="Tensor layout of the model I/O.")
    parser.add_argument("--legacy-iou", action="store_true", help="Use the deployed max/max IoU formula.")
    parser.add_argument("--keep-highest-score", action="store_true", help="Score-ordered NMS instead of keep-later.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--show", action="store_true", help="Show a window with visualized detections.")
    parser.add_argument("--out", default=None, help="Optional output path (image or video).")
    parser.add_argument("--every", type=int, default=1, help="Process every Nth frame for video/webcam.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N frames (0 = no limit).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    cfg = build_config(args)
    pipeline = load_pipeline(args.model, args.labels, config=cfg, onnx_providers=onnx_providers)

    if args.image is not None:
        img = cv2.imread(args.image)
        if img is None:
            raise FileNotFoundError(f"Could not read image at path: {args.image}")

        boxes = pipeline(img)
        vis = draw_pixel_boxes(img, boxes, input_resolution=cfg.input_resolution, show_score=True)
        if args.out:
            if not cv2.imwrite(args.out, vis):
                raise RuntimeError(f"Failed to write output image: {args.out}")

        for box in boxes:
            print(box.label, round(box.confidence, 3), (box.x, box.y, box.width, box.height))

        if args.show:
            cv2.imshow("detections", vis)
            cv2.waitKey(0)
            cv2.destroyAllWindows()
        return 0

    if args.every < 1:
        raise ValueError("--every must be >= 1")
    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")

    if args.video is not None:
        cap = cv2.VideoCapture(args.video)
        if not cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {args.video}")
    else:
        cap = cv2.VideoCapture(int(args.webcam))
        if not cap.isOpened():
            raise RuntimeError(f"Could not open webcam index: {args.webcam}")

    writer = None
    frame_idx = 0
    processed = 0
    try:
        while True:
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            frame_idx += 1
            if (frame_idx - 1) % args.every != 0:
                continue

            boxes = pipeline(frame)
            vis = draw_pixel_boxes(frame, boxes, input_resolution=cfg.input_resolution, show_score=True)

            if args.out and writer is None:
                fps = cap.get(cv2.CAP_PROP_FPS)
                if fps is None or fps <= 0:
                    fps = 30.0
                h, w = vis.shape[:2]
                writer = cv2.VideoWriter(args.out, cv2.VideoWriter_fourcc(*"mp4v"), fps, (w, h))
                if not writer.isOpened():
                    raise RuntimeError(f"Failed to open video writer: {args.out}")
            if writer is not None:
                writer.write(vis)

            if args.show:
                cv2.imshow("detections", vis)
                if (cv2.waitKey(1) & 0xFF) in (27, ord("q")):
                    break

            processed += 1
            if args.max_frames and processed >= args.max_frames:
                break
    finally:
        cap.release()
        if writer is not None:
            writer.release()
        if args.show:
            cv2.destroyAllWindows()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
