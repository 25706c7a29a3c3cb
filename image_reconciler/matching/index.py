"""Candidate image index built from image directories"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from tqdm import tqdm

from image_reconciler.matching.normalizer import normalize
from image_reconciler.models.catalog import ImageDescriptor
from image_reconciler.models.matching import DirectoryIssue, IndexCollision

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".webp", ".avif", ".gif", ".svg"}
)


class ImageIndex:
    """
    Lookup table of discovered images.

    Every image is registered under its normalized stem, its normalized
    filename and its raw lower-case filename. A key that is already held by
    another image keeps the first-seen image; the clash is recorded in
    ``collisions``.
    """

    def __init__(
        self,
        descriptors: Sequence[ImageDescriptor] = (),
        directories: Sequence[Path] = (),
        directory_errors: Sequence[DirectoryIssue] = (),
    ):
        self.directories: List[Path] = list(directories)
        self.directory_errors: List[DirectoryIssue] = list(directory_errors)
        self.collisions: List[IndexCollision] = []

        self._descriptors: List[ImageDescriptor] = []
        self._by_key: Dict[str, ImageDescriptor] = {}
        self._by_category: Dict[str, List[ImageDescriptor]] = {}
        self._by_path: Dict[Path, ImageDescriptor] = {}

        for descriptor in descriptors:
            self.add(descriptor)

    def add(self, descriptor: ImageDescriptor) -> None:
        """Register a descriptor under all of its lookup keys"""
        if descriptor.absolute_path in self._by_path:
            return

        self._descriptors.append(descriptor)
        self._by_path[descriptor.absolute_path] = descriptor
        self._by_category.setdefault(descriptor.category.lower(), []).append(descriptor)

        keys = [descriptor.normalized_key, normalize(descriptor.filename), descriptor.filename.lower()]
        for key in dict.fromkeys(keys):
            if not key:
                continue
            existing = self._by_key.get(key)
            if existing is None:
                self._by_key[key] = descriptor
            elif existing != descriptor:
                self.collisions.append(
                    IndexCollision(
                        key=key,
                        kept=str(existing.absolute_path),
                        ignored=str(descriptor.absolute_path),
                    )
                )
                logger.debug(
                    "Key collision on %r: keeping %s, ignoring %s",
                    key,
                    existing.absolute_path,
                    descriptor.absolute_path,
                )

    def exact_lookup(self, key: str) -> Optional[ImageDescriptor]:
        """Return the first-seen image registered under ``key``"""
        if not key:
            return None
        return self._by_key.get(key)

    def all_candidates(self) -> Iterator[ImageDescriptor]:
        """Iterate every indexed image in scan order; each call starts afresh"""
        yield from list(self._descriptors)

    def candidates_in_categories(self, categories: Iterable[str]) -> List[ImageDescriptor]:
        """Images whose category is one of ``categories`` (case-insensitive)"""
        wanted = {category.lower() for category in categories}
        return [d for category in sorted(wanted) for d in self._by_category.get(category, [])]

    def descriptor_for_path(self, path: Path) -> Optional[ImageDescriptor]:
        """Return the indexed image stored at ``path``, if any"""
        try:
            resolved = Path(path).resolve()
        except OSError:
            return None
        return self._by_path.get(resolved)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, descriptor: object) -> bool:
        return isinstance(descriptor, ImageDescriptor) and descriptor.absolute_path in self._by_path


def scan_directory(
    directory: Path, recursive: bool = False
) -> Tuple[List[ImageDescriptor], Optional[DirectoryIssue]]:
    """
    Scan one directory for supported image files.

    The category of an image is the name of the directory that holds it, so
    a recursive scan of ``sitephoto/`` labels ``sitephoto/Coffee/x.png`` as
    ``Coffee``. Files are returned sorted by their path relative to
    ``directory``.

    Args:
        directory: Directory to scan
        recursive: Whether to descend into sub-directories

    Returns:
        Tuple of (descriptors, issue); issue is set when the directory is
        missing or unreadable
    """
    directory = Path(directory)

    if not directory.exists():
        return [], DirectoryIssue(directory=str(directory), reason="Directory does not exist")
    if not directory.is_dir():
        return [], DirectoryIssue(directory=str(directory), reason="Path is not a directory")

    try:
        paths = directory.rglob("*") if recursive else directory.iterdir()
        files = sorted(
            (path for path in paths if path.suffix.lower() in SUPPORTED_EXTENSIONS),
            key=lambda path: path.relative_to(directory).as_posix(),
        )
        descriptors = [
            ImageDescriptor(
                absolute_path=path.resolve(),
                category=path.parent.name,
                filename=path.name,
                extension=path.suffix.lower(),
            )
            for path in files
            if path.is_file()
        ]
    except OSError as e:
        return [], DirectoryIssue(directory=str(directory), reason=f"Unreadable: {e}")

    return descriptors, None


def build_index(
    directories: Sequence[Path | str],
    recursive: bool = False,
    max_workers: int = 4,
    show_progress: bool = False,
) -> ImageIndex:
    """
    Build the candidate index from a list of image directories.

    Directories are scanned in parallel; results are merged in the order the
    directories were given, so the index does not depend on scheduling or
    filesystem enumeration order. A missing or unreadable directory is logged
    and recorded in ``ImageIndex.directory_errors``; it never aborts the run.

    Args:
        directories: Image directories, each directory name is a category
        recursive: Whether to descend into sub-directories
        max_workers: Number of scanning threads
        show_progress: Show a tqdm progress bar

    Returns:
        ImageIndex with every discovered image
    """
    unique_dirs: List[Path] = list(dict.fromkeys(Path(d) for d in directories))

    if not unique_dirs:
        return ImageIndex()

    workers = max(1, min(max_workers, len(unique_dirs)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(
            tqdm(
                executor.map(lambda d: scan_directory(d, recursive), unique_dirs),
                total=len(unique_dirs),
                desc="Scanning image directories",
                disable=not show_progress,
            )
        )

    index = ImageIndex(directories=unique_dirs)
    for directory, (descriptors, issue) in zip(unique_dirs, results):
        if issue is not None:
            logger.warning("Skipping image directory %s: %s", issue.directory, issue.reason)
            index.directory_errors.append(issue)
            continue

        logger.info("Found %d images in %s", len(descriptors), directory)
        for descriptor in descriptors:
            index.add(descriptor)

    if index.collisions:
        logger.info("%d index key collisions kept first-seen images", len(index.collisions))

    return index
