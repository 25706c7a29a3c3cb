"""Resolution of catalog image references to files on disk"""

import re
from pathlib import Path
from typing import Iterable, List, Optional

from image_reconciler.models.catalog import ImageDescriptor


class ImageResolver:
    """
    Decides whether image references point at existing files.

    References such as ``/sitephoto/New images/x.jpg`` are site-relative: the
    leading slash is dropped and the remainder is looked up under each public
    root in turn. Absolute filesystem paths are checked as-is. References
    matching ``placeholder_pattern`` never resolve, so generic placeholder
    images become eligible for replacement.
    """

    def __init__(
        self,
        public_roots: Iterable[Path | str] = (Path("."),),
        placeholder_pattern: Optional[str] = None,
    ):
        self.public_roots: List[Path] = [Path(root).resolve() for root in public_roots]
        self._placeholder = re.compile(placeholder_pattern) if placeholder_pattern else None

    def is_placeholder(self, ref: Optional[str]) -> bool:
        return bool(ref and self._placeholder and self._placeholder.search(ref))

    def resolve(self, ref: Optional[str]) -> Optional[Path]:
        """
        Find the file an image reference points at.

        Args:
            ref: Image reference from the catalog

        Returns:
            Absolute path of the existing file, or None when the reference is
            empty, a placeholder or broken
        """
        if not ref or not ref.strip() or self.is_placeholder(ref):
            return None

        ref = ref.strip()
        candidates: List[Path] = []

        as_path = Path(ref)
        if as_path.is_absolute():
            candidates.append(as_path)

        relative = ref.lstrip("/\\")
        if relative:
            candidates.extend(root / relative for root in self.public_roots)

        for candidate in candidates:
            try:
                if candidate.is_file():
                    return candidate.resolve()
            except OSError:
                continue

        return None

    def resolves(self, ref: Optional[str]) -> bool:
        return self.resolve(ref) is not None

    def to_ref(self, descriptor: ImageDescriptor) -> str:
        """
        Turn an indexed image into the reference written to the catalog.

        Images under a public root become site-relative (``/sitephoto/...``);
        anything else keeps its absolute path.

        Args:
            descriptor: Indexed image

        Returns:
            Image reference string using forward slashes
        """
        for root in self.public_roots:
            try:
                relative = descriptor.absolute_path.relative_to(root)
            except ValueError:
                continue
            return "/" + relative.as_posix()

        return descriptor.absolute_path.as_posix()
