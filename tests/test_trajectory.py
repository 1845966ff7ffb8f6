import numpy as np
import pytest

from scanodom.trajectory import TrajectoryManager


def _pose(t, yaw=0.0):
    c, s = np.cos(yaw), np.sin(yaw)
    pose = np.eye(4)
    pose[:3, :3] = [[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]]
    pose[:3, 3] = t
    return pose


def test_initial_state_identity():
    manager = TrajectoryManager()
    assert np.allclose(manager.current_pose(), np.eye(4))
    assert np.allclose(manager.T_world_odom(), np.eye(4))


def test_current_pose_follows_odom():
    manager = TrajectoryManager()
    pose = _pose([1.0, 2.0, 3.0], 0.3)
    manager.add_odom(1.0, pose)
    assert np.allclose(manager.current_pose(), pose)


def test_update_anchor_aligns_pose():
    manager = TrajectoryManager()
    manager.add_odom(1.0, _pose([1.0, 0.0, 0.0]))
    manager.add_odom(2.0, _pose([2.0, 0.0, 0.0], 0.2))
    world = _pose([10.0, 5.0, 0.0], 1.0)
    manager.update_anchor(2.0, world)
    assert np.allclose(manager.current_pose(), world)


def test_anchor_then_new_odom_is_chained():
    manager = TrajectoryManager()
    odom1 = _pose([1.0, 0.0, 0.0], 0.1)
    odom2 = _pose([3.0, 1.0, 0.0], 0.4)
    manager.add_odom(1.0, odom1)
    world = _pose([5.0, 5.0, 1.0], -0.5)
    manager.update_anchor(1.0, world)
    manager.add_odom(2.0, odom2)
    expected = world @ np.linalg.inv(odom1) @ odom2
    assert np.allclose(manager.current_pose(), expected)


def test_odom2world_point_matches_pose():
    manager = TrajectoryManager()
    manager.add_odom(1.0, _pose([1.0, 1.0, 0.0], 0.3))
    manager.update_anchor(1.0, _pose([4.0, -2.0, 1.0], 0.9))
    pose = _pose([0.5, 0.7, 0.2], 0.1)
    assert np.allclose(manager.odom2world_point(pose[:3, 3]), manager.odom2world_pose(pose)[:3, 3])


def test_update_anchor_beyond_last_raises():
    manager = TrajectoryManager()
    manager.add_odom(1.0, np.eye(4))
    with pytest.raises(IndexError):
        manager.update_anchor(5.0, np.eye(4))


def test_t_world_odom_is_copy():
    manager = TrajectoryManager()
    t = manager.T_world_odom()
    t[0, 3] = 100.0
    assert np.allclose(manager.T_world_odom(), np.eye(4))