"""
Tests for the funded-content fingerprint registry.
"""

import json
import threading

import pytest

from sentinel.validation.fingerprint import FingerprintRegistry, fingerprint, normalize_content


class TestNormalization:

    def test_normalize(self):
        assert normalize_content("Hello,\tWorld!\n 42_x") == "helloworld42_x"

    def test_deterministic(self):
        assert fingerprint("Some research text") == fingerprint("Some research text")
        assert len(fingerprint("x")) == 64

    def test_whitespace_and_punctuation_insensitive(self):
        original = "Senolytic cocktail extends lifespan in aged mice."
        reformatted = "  SENOLYTIC\tcocktail\r\nextends   lifespan -- in aged mice!!"

        assert fingerprint(original) == fingerprint(reformatted)

    def test_different_words_differ(self):
        assert fingerprint("aged mice") != fingerprint("young mice")


class TestRegistry:

    def test_empty_when_missing(self, tmp_path):
        registry = FingerprintRegistry(tmp_path / "missing.json")
        assert len(registry) == 0
        assert not registry.is_duplicate("anything")

    def test_register_and_persist(self, tmp_path):
        path = tmp_path / "funded.json"
        registry = FingerprintRegistry(path)

        digest = registry.register_success("Funded content")

        assert registry.is_duplicate("funded   CONTENT")
        assert registry.contains(digest)
        assert json.loads(path.read_text()) == [digest]

        reloaded = FingerprintRegistry(path)
        assert reloaded.is_duplicate("Funded content")

    def test_corrupt_store_starts_empty(self, tmp_path, caplog):
        path = tmp_path / "funded.json"
        path.write_text("{not json")

        registry = FingerprintRegistry(path)

        assert len(registry) == 0
        assert "Failed to load fingerprint registry" in caplog.text

    def test_wrong_shape_starts_empty(self, tmp_path):
        path = tmp_path / "funded.json"
        path.write_text(json.dumps({"hashes": ["abc"]}))

        assert len(FingerprintRegistry(path)) == 0

    def test_in_memory_registry(self):
        registry = FingerprintRegistry(None)
        registry.register_success("content")
        assert registry.is_duplicate("content")

    def test_reservation_is_exclusive(self, registry):
        assert registry.try_reserve("content")
        assert not registry.try_reserve("CONTENT")

        registry.release("content")
        assert registry.try_reserve("content")

    def test_funded_content_cannot_be_reserved(self, registry):
        registry.register_success("content")
        assert not registry.try_reserve("content")

    def test_register_clears_reservation(self, registry):
        registry.try_reserve("content")
        registry.register_success("content")

        assert registry.is_duplicate("content")
        assert not registry.try_reserve("content")

    def test_concurrent_reservations(self, registry):
        results = []
        barrier = threading.Barrier(8)

        def reserve():
            barrier.wait()
            results.append(registry.try_reserve("Same content"))

        threads = [threading.Thread(target=reserve) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1

    def test_save_failure_does_not_raise(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        registry = FingerprintRegistry(blocker / "funded.json")

        registry.register_success("content")

        assert registry.is_duplicate("content")
        assert "Failed to save fingerprint registry" in caplog.text
