"""
Export decoded cartesian points to PCD files.

open3d is an optional dependency (the `pcd` extra) and is only imported when
a PCD file is written.
"""
from pathlib import Path
from typing import Any, Iterable, Mapping

import numpy as np

from e57codec.core.logging_config import get_logger

logger = get_logger(__name__)

XYZ_FIELDS = ("cartesianX", "cartesianY", "cartesianZ")


def cartesian_array(records: Iterable[Mapping[str, Any]], skip_invalid: bool = True) -> np.ndarray:
    """
    Collect the cartesian coordinates of decoded records.

    Args:
        records: Decoded rows holding cartesianX/Y/Z
        skip_invalid: Drop rows whose cartesianInvalidState is non-zero

    Returns:
        Array of shape (N, 3), float64

    Raises:
        KeyError: If a record has no cartesian coordinates
    """
    xyz = [
        (r["cartesianX"], r["cartesianY"], r["cartesianZ"])
        for r in records
        if not (skip_invalid and r.get("cartesianInvalidState", 0))
    ]
    return np.asarray(xyz, dtype=np.float64).reshape(-1, 3)


def save_to_pcd(points: np.ndarray, output_path: str | Path, binary: bool = False) -> None:
    """Saves a (N, 3) numpy array to a PCD file."""
    import open3d as o3d

    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(points.astype(np.float64))
    o3d.io.write_point_cloud(str(output_path), pcd, write_ascii=not binary)
    logger.info(f"Wrote {len(points)} points to {output_path}")
