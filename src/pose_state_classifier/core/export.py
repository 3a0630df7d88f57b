"""Lab Streaming Layer output of published states and session markers."""

from datetime import datetime

from pylsl import StreamInfo, StreamOutlet

from pose_state_classifier.core import config
from pose_state_classifier.core.joints import StateLabel


def create_label_outlet(source_id: str = config.LSL_SOURCE_ID) -> StreamOutlet:
    """Creates the lsl outlet that carries state labels.

    Change source_id to identify the recording station, ex: "station-midtown".

    Args:
        source_id: unique identifier of the stream source.

    Returns:
        pylsl outlet with "State" and "Confidence" string channels.
    """
    info = StreamInfo(
        config.LSL_STREAM_NAME, config.LSL_STREAM_TYPE, 2, 0, "string", source_id
    )
    channels = info.desc().append_child("channels")
    channels.append_child("channel").append_child_value("label", "State")
    channels.append_child("channel").append_child_value("label", "Confidence")
    return StreamOutlet(info)


def push_label(lsl_outlet: StreamOutlet, label: StateLabel) -> None:
    """Streams one state label.

    Args:
        lsl_outlet: pylsl object to stream markers.
        label: published state label.
    """
    confidence = "" if label.confidence is None else f"{label.confidence:.1f}"
    lsl_outlet.push_sample([label.label, confidence])


def push_marker(lsl_outlet: StreamOutlet, event: str) -> None:
    """Streams a timestamped session event, ex: "camera_open: 2025-07-09 10:00:00.000000".

    Args:
        lsl_outlet: pylsl object to stream markers.
        event: name of the session event.
    """
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")
    lsl_outlet.push_sample([f"{event}: {timestamp}", ""])
