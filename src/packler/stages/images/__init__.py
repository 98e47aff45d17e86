from .runner import clean_dist_dir, collect_images, process_images

__all__ = ["process_images", "collect_images", "clean_dist_dir"]
