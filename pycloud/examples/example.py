"""
Example: Clean, cluster and segment a synthetic scene of a floor plane and three blobs.
"""
import os
import sys
import numpy as np

# Add the current directory to the path to allow importing local modules
current_dir = os.path.dirname(os.path.abspath(__file__))
parent_dir = os.path.dirname(os.path.dirname(current_dir))
if parent_dir not in sys.path:
    sys.path.insert(0, parent_dir)

# Import from the pycloud package
from pycloud.logger import CloudLogger, LogLevel, set_logger
from pycloud.synthetic import generate_plane_point_cloud, generate_blob_point_cloud
from pycloud.pointcloud import PointCloud
from pycloud.filters import Axis


def main():
    # Set up console logger for debug output
    logger = CloudLogger(mode='console', console_level=LogLevel.DEBUG)
    set_logger(logger)

    # Floor at z=0 plus three objects standing on it
    floor = generate_plane_point_cloud([0, 0, 0], [0, 0, 1], size=4.0, n_points=4000, seed=42)
    blob_centers = np.array([[-1.0, -1.0, 0.5], [1.0, 0.0, 0.5], [0.0, 1.2, 0.8]])
    blobs = generate_blob_point_cloud(blob_centers, n_points_per_blob=300, spread=0.08, seed=7)
    noise = PointCloud.from_numpy(np.random.default_rng(3).uniform(-3, 3, size=(40, 3)))

    scene = floor.copy()
    scene.extend(blobs)
    scene.extend(noise)
    logger(f"Generated {len(scene)} points.")
    logger(f"  Bounding box: {scene.bounding_box()}")
    logger(f"  Centroid:     {scene.centroid()}")

    # Nearest neighbor lookups on both indices
    tree = scene.build_kdtree()
    octree = scene.build_octree()
    hit = tree.nearest_neighbor(blob_centers[1])
    logger(f"Nearest point to blob 1 center: {hit.point.position()} (distance {hit.distance:.4f})")
    logger(f"Points within 0.1 of blob 1 center: kdtree={len(tree.radius_search(blob_centers[1], 0.1))}, "
           f"octree={len(octree.radius_search(blob_centers[1], 0.1))}")

    # Cleanup
    cleaned = scene.remove_outliers(k_neighbors=8, std_dev_threshold=2.0)
    cleaned = cleaned.pass_through(Axis.Z, -0.5, 2.0)
    downsampled = cleaned.voxel_downsample(0.05)
    logger(f"After outlier removal, pass-through and voxel grid: {len(downsampled)} points.")

    # Dominant plane
    inliers, plane = downsampled.ransac_plane(distance_threshold=0.02, max_iterations=200, seed=0)
    logger(f"\n[PLANE] {plane}")

    # Cluster what is left above the floor
    inlier_set = set(inliers)
    objects = PointCloud.from_points([p for i, p in enumerate(downsampled) if i not in inlier_set])
    clusters = objects.euclidean_cluster(tolerance=0.12, min_size=10, max_size=10000)
    logger(f"\n[CLUSTERS] Found {len(clusters)} clusters.")
    for i, cluster in enumerate(clusters):
        center = objects.to_numpy()[cluster].mean(axis=0)
        logger(f"Cluster {i}: {len(cluster)} points, center={np.round(center, 3)}")

    # Optional visualization
    try:
        import open3d as o3d
        o3d.visualization.draw_geometries([downsampled.to_open3d(), objects.to_open3d()])
        logger("Visualization succeeded.")
    except Exception as e:
        logger(f"Visualization failed: {e}")


if __name__ == "__main__":
    main()
