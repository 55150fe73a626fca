"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene and material registries around each test."""
    # Import here so fields are created after ti.init
    from pathtrace.materials.dielectric import clear_dielectric_materials
    from pathtrace.materials.lambertian import clear_lambertian_materials
    from pathtrace.materials.metal import clear_metal_materials
    from pathtrace.scene.intersection import clear_scene
    from pathtrace.scene.manager import Scene, _clear_material_tracking

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        Scene._active_scene = None

    _clear_all()
    yield
    _clear_all()
