"""CLI for pose_state_classifier."""

import argparse
import logging
from typing import List, Optional

from pose_state_classifier.core import config, orchestrator


def parse_arguments(args: Optional[List[str]]) -> argparse.Namespace:
    """Argument parser for pose_state_classifier cli.

    Args:
        args: A list of command line arguments given as strings. If None, the parser
            will take the args from `sys.argv`.

    Returns:
        Namespace object with all the input arguments and default values.

    Raises:
        SystemExit: if arguments are invalid.
    """
    parser = argparse.ArgumentParser(
        description="Run the live drowsiness state classification pipeline.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--camera",
        type=int,
        default=config.CAMERA_INDEX,
        help="OpenCV index of the camera to read frames from.",
    )
    parser.add_argument(
        "-m",
        "--model",
        type=str,
        default=None,
        help="Path to an .onnx sequence classifier. The head tilt heuristic is used if omitted or if it fails to load.",
    )
    parser.add_argument(
        "--pose_model",
        type=str,
        default=config.POSE_MODEL,
        help="YOLO pose weights used to detect joints.",
    )
    parser.add_argument(
        "-w",
        "--window_size",
        type=int,
        default=config.WINDOW_SIZE,
        help="Number of frames in the sliding classification window.",
    )
    parser.add_argument(
        "-d",
        "--display",
        action="store_true",
        help="Show the live camera feed with skeleton and state overlay.",
    )
    parser.add_argument(
        "--source_id",
        type=str,
        default=config.LSL_SOURCE_ID,
        help="Source identifier of the lsl stream.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug messages.",
    )

    return parser.parse_args(args)


def main(
    args: Optional[List[str]] = None,
) -> None:
    """Runs the state classification orchestrator with command line arguments.

    Args:
         args: A list of command line arguments given as strings. If None, the parser
            will take the args from `sys.argv`.
    """
    arguments = parse_arguments(args)
    logging.basicConfig(
        level=logging.DEBUG if arguments.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    orchestrator.run(
        camera_index=arguments.camera,
        model_path=arguments.model,
        pose_model=arguments.pose_model,
        window_size=arguments.window_size,
        display=arguments.display,
        source_id=arguments.source_id,
    )
