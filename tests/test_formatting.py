import numpy as np

from scanodom.formatting import (
    convert_to_string,
    format_isometry,
    format_quaternion,
    format_vector,
)
from scanodom.transforms import isometry_from_vector


def test_format_vector():
    assert format_vector([1.0, 2.0, 3.0]) == "vec(1.000000,2.000000,3.000000)"


def test_format_quaternion_identity():
    assert format_quaternion([0.0, 0.0, 0.0, 1.0]) == "quat(0.000000,0.000000,0.000000,1.000000)"


def test_format_isometry_identity():
    assert format_isometry(np.eye(4)) == (
        "se3(0.000000,0.000000,0.000000,0.000000,0.000000,0.000000,1.000000)"
    )


def test_format_isometry_contains_translation():
    pose = isometry_from_vector([1.5, -2.0, 3.25, 0.0, 0.0, 0.0, 1.0])
    assert format_isometry(pose).startswith("se3(1.500000,-2.000000,3.250000,")


def test_convert_int_and_string():
    assert convert_to_string(5) == "5"
    assert convert_to_string("abc") == "abc"


def test_convert_float_shortest():
    assert convert_to_string(2.5) == "2.5"
    assert convert_to_string(3.0) == "3"


def test_convert_bool():
    assert convert_to_string(True) == "true"
    assert convert_to_string(False) == "false"


def test_convert_list_joins_elements():
    assert convert_to_string([1, 2]) == "[" + convert_to_string(1) + "," + convert_to_string(2) + "]"
    assert convert_to_string([]) == "[]"


def test_convert_numpy_vector_and_pose():
    vec = np.array([1.0, 2.0])
    assert convert_to_string(vec) == format_vector(vec)
    pose = np.eye(4)
    assert convert_to_string(pose) == format_isometry(pose)