from scanodom.frames import PreprocessedFrame
from scanodom.odometry_base import OdometryEstimationBase
from scanodom.odometry_callbacks import OdometryEstimationCallbacks


def test_insert_imu_fires_callback():
    received = []
    callback_id = OdometryEstimationCallbacks.on_insert_imu.add(lambda *args: received.append(args))
    try:
        result = OdometryEstimationBase().insert_imu(1.25, [0.0, 0.0, 9.8], [0.1, 0.0, 0.0])
    finally:
        OdometryEstimationCallbacks.on_insert_imu.remove(callback_id)
    assert result is None
    assert received == [(1.25, [0.0, 0.0, 9.8], [0.1, 0.0, 0.0])]


def test_insert_twist_fires_callback():
    received = []
    callback_id = OdometryEstimationCallbacks.on_insert_twist.add(lambda *args: received.append(args))
    try:
        result = OdometryEstimationBase().insert_twist(2.0, 0.75)
    finally:
        OdometryEstimationCallbacks.on_insert_twist.remove(callback_id)
    assert result is None
    assert received == [(2.0, 0.75)]


def test_insert_image_fires_callback():
    received = []
    callback_id = OdometryEstimationCallbacks.on_insert_image.add(lambda *args: received.append(args))
    try:
        result = OdometryEstimationBase().insert_image(3.0, "image")
    finally:
        OdometryEstimationCallbacks.on_insert_image.remove(callback_id)
    assert result is None
    assert received == [(3.0, "image")]


def test_insert_frame_fires_callback_and_estimates_nothing():
    received = []
    callback_id = OdometryEstimationCallbacks.on_insert_frame.add(lambda *args: received.append(args))
    frame = PreprocessedFrame(stamp=4.0)
    try:
        state, marginalized = OdometryEstimationBase().insert_frame(frame)
    finally:
        OdometryEstimationCallbacks.on_insert_frame.remove(callback_id)
    assert state is None
    assert marginalized == []
    assert len(received) == 1 and received[0][0] is frame


def test_no_remaining_frames():
    assert OdometryEstimationBase().get_remaining_frames() == []