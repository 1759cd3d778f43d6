"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Implements content fingerprints using FileRecord and pluggable hash algorithms.

The HasherImpl class computes a digest of the first PREFIX_BYTES of a file
(the whole file when shorter) and, on request, of the entire content.
Digests are cached per path so a record is read at most once per kind.
Read failures propagate as OSError; the grouper drops such files.
"""

import hashlib
from typing import Dict, Optional

import xxhash

from spacescan.core.models import FileRecord
from spacescan.core.interfaces import HashAlgorithm


class DetectionConfig:
    PREFIX_BYTES = 64 * 1024         # Bytes covered by the prefix fingerprint
    FULL_HASH_CHUNK = 1024 * 1024    # Read size while streaming full-content hashes


# Use the same way to implement and use any other hashing algorithm
class Sha256AlgorithmImpl(HashAlgorithm):
    name = "sha256"

    def new(self):
        return hashlib.sha256()


class XXHashAlgorithmImpl(HashAlgorithm):
    name = "xxhash"

    def new(self):
        return xxhash.xxh64()


HASH_ALGORITHMS = {
    Sha256AlgorithmImpl.name: Sha256AlgorithmImpl,
    XXHashAlgorithmImpl.name: XXHashAlgorithmImpl,
}


class HasherImpl:
    """
    A hasher implementation that supports any algorithm via the HashAlgorithm interface.
    """

    def __init__(self, algorithm: Optional[HashAlgorithm] = None, prefix_bytes: int = DetectionConfig.PREFIX_BYTES):
        self.algorithm = algorithm or Sha256AlgorithmImpl()
        self.prefix_bytes = prefix_bytes
        self._prefix_cache: Dict[str, bytes] = {}
        self._full_cache: Dict[str, bytes] = {}

    def compute_prefix_hash(self, file: FileRecord) -> bytes:
        """Computes and caches the digest of the first prefix_bytes of a file."""
        cached = self._prefix_cache.get(file.path)
        if cached is not None:
            return cached

        digest = self.algorithm.new()
        with open(file.path, 'rb') as f:
            digest.update(f.read(self.prefix_bytes))
        result = digest.digest()
        self._prefix_cache[file.path] = result
        return result

    def compute_full_hash(self, file: FileRecord) -> bytes:
        """Computes and caches the digest of the whole file, streamed in chunks."""
        cached = self._full_cache.get(file.path)
        if cached is not None:
            return cached

        digest = self.algorithm.new()
        with open(file.path, 'rb') as f:
            for chunk in iter(lambda: f.read(DetectionConfig.FULL_HASH_CHUNK), b''):
                digest.update(chunk)
        result = digest.digest()
        self._full_cache[file.path] = result
        return result

    def clear_cache(self) -> None:
        self._prefix_cache.clear()
        self._full_cache.clear()
