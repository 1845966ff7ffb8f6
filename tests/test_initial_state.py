import numpy as np

from scanodom.frames import PreprocessedFrame
from scanodom.initial_state import NaiveInitialStateEstimation
from scanodom.transforms import isometry_from_vector

T_LIDAR_IMU = isometry_from_vector([0.1, 0.2, -0.3, 0.0, 0.0, 0.3826834, 0.9238795])


def test_no_imu_gives_no_pose():
    estimation = NaiveInitialStateEstimation(T_LIDAR_IMU, np.zeros(6))
    assert estimation.initial_pose() is None


def test_small_accumulated_acc_gives_no_pose():
    estimation = NaiveInitialStateEstimation(T_LIDAR_IMU, np.zeros(6))
    estimation.insert_imu(0.0, [0.0, 0.0, 3.0], [0.0, 0.0, 0.0])
    assert estimation.initial_pose() is None


def test_gravity_along_z_gives_identity():
    bias = [0.1, 0.2, 0.3, 0.4, 0.5, 0.6]
    estimation = NaiveInitialStateEstimation(T_LIDAR_IMU, bias)
    estimation.insert_imu(0.0, [0.0, 0.0, 9.81], [0.0, 0.0, 0.0])
    estimation.insert_frame(PreprocessedFrame())
    pose = estimation.initial_pose()
    assert pose.id == -1
    np.testing.assert_allclose(pose.T_world_imu, np.eye(4))
    np.testing.assert_allclose(pose.T_world_lidar @ T_LIDAR_IMU, np.eye(4), atol=1e-12)
    np.testing.assert_allclose(pose.imu_bias, bias)
    np.testing.assert_allclose(pose.v_world_imu, np.zeros(3))


def test_tilted_gravity_is_rotated_onto_z():
    acc = np.array([3.0, -2.0, 9.0])
    estimation = NaiveInitialStateEstimation(T_LIDAR_IMU, np.zeros(6))
    estimation.insert_imu(0.0, acc, [0.0, 0.0, 0.0])
    estimation.insert_imu(0.01, acc, [0.0, 0.0, 0.0])
    pose = estimation.initial_pose()
    rotation = pose.T_world_imu[:3, :3]
    np.testing.assert_allclose(rotation @ (acc / np.linalg.norm(acc)), [0.0, 0.0, 1.0], atol=1e-9)
    np.testing.assert_allclose(rotation.T @ rotation, np.eye(3), atol=1e-12)
    np.testing.assert_allclose(pose.T_world_imu[:3, 3], np.zeros(3))


def test_forced_state_is_used_without_imu():
    init_pose = isometry_from_vector([1.0, 2.0, 3.0, 0.0, 0.0, 0.0, 1.0])
    estimation = NaiveInitialStateEstimation(T_LIDAR_IMU, np.zeros(6))
    estimation.set_init_state(init_pose, [0.5, 0.0, -0.5])
    pose = estimation.initial_pose()
    np.testing.assert_allclose(pose.T_world_imu, init_pose)
    np.testing.assert_allclose(pose.v_world_imu, [0.5, 0.0, -0.5])
    np.testing.assert_allclose(pose.T_world_lidar @ T_LIDAR_IMU, init_pose, atol=1e-12)