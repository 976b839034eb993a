"""批量处理测试。

测试文件名清洗、临时目录登记表、并发执行器和批量编排的失败隔离。
"""

import threading
import time
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from PIL import Image

from ximage_compress.engine import batch as batch_module
from ximage_compress.engine.batch import BatchOrchestrator, decode_payload
from ximage_compress.engine.concurrent_executor import (
    ConcurrentExecutor,
    raise_if_abandoned,
)
from ximage_compress.exceptions import DecodeError, EncodeError, MissingDestinationError
from ximage_compress.models.compression_config import UploadItem
from ximage_compress.utils.cleanup_helpers import ScratchRegistry
from ximage_compress.utils.naming_helpers import PathResolver, sanitize_filename


class TestSanitizeFilename:
    """文件名清洗测试"""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("../../etc/passwd", "__etc_passwd"),
            ("a/b\\c:d", "a_b_c_d"),
            ("photo 1.png", "photo_1.png"),
            ("x\0y.png", "xy.png"),
            ("....png", "png"),
            ("照片-01.jpg", "照片-01.jpg"),
        ],
    )
    def test_sanitize(self, raw: str, expected: str):
        assert sanitize_filename(raw) == expected

    def test_result_has_no_separators(self):
        name = sanitize_filename("..\\../a/..//b")
        assert "/" not in name
        assert "\\" not in name
        assert ".." not in name


class TestPathResolver:
    """源路径/目标路径解析测试"""

    def test_source_path_takes_precedence(self, temp_dir: Path):
        source = temp_dir / "orig.png"
        assert PathResolver.resolve_source(temp_dir / "copy.png", source, None) == source

    def test_scratch_copy_used_with_output_dir(self, temp_dir: Path):
        copy = temp_dir / "copy.png"
        output = PathResolver.resolve_output_path(temp_dir, "copy.png")
        assert PathResolver.resolve_source(copy, None, output) == copy

    def test_missing_destination(self, temp_dir: Path):
        with pytest.raises(MissingDestinationError):
            PathResolver.resolve_source(temp_dir / "copy.png", None, None)


class TestScratchRegistry:
    """临时目录登记表测试"""

    def test_scratch_space_removed_on_error(self, registry: ScratchRegistry):
        with pytest.raises(RuntimeError):
            with registry.scratch_space("test") as path:
                (path / "file.bin").write_bytes(b"data")
                assert path in registry.tracked()
                raise RuntimeError("boom")

        assert not path.exists()
        assert registry.tracked() == {}

    def test_unique_directories(self, registry: ScratchRegistry):
        first = registry.create("test")
        second = registry.create("test")
        assert first != second
        assert first.parent == second.parent == registry.root / "test"

    def test_sweep_old_entries(self, registry: ScratchRegistry):
        now = datetime.now()
        old = registry.create("test")
        fresh = registry.create("test")
        registry.register(old, now - timedelta(hours=2))

        swept = registry.sweep(timedelta(hours=1), now=now)

        assert swept == [old]
        assert not old.exists()
        assert fresh.exists()
        assert list(registry.tracked()) == [fresh]

    def test_sweep_forgets_vanished_directories(self, registry: ScratchRegistry):
        now = datetime.now()
        ghost = registry.root / "test" / "ghost"
        registry.register(ghost, now - timedelta(days=1))

        assert registry.sweep(timedelta(hours=1), now=now) == [ghost]
        assert registry.tracked() == {}

    def test_concurrent_registration(self, registry: ScratchRegistry):
        def worker():
            for _ in range(20):
                registry.release(registry.create("test"))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert registry.tracked() == {}


class TestConcurrentExecutor:
    """并发执行器测试"""

    def test_sequential_order(self):
        executor: ConcurrentExecutor = ConcurrentExecutor(max_workers=1)
        assert executor.run_ordered([3, 1, 2], lambda x: x * 10, lambda x, e: -1) == [
            30,
            10,
            20,
        ]

    def test_failure_isolated(self):
        def task(x: int) -> str:
            if x == 2:
                raise ValueError("bad")
            return f"ok-{x}"

        executor: ConcurrentExecutor = ConcurrentExecutor(max_workers=3)
        results = executor.run_ordered([1, 2, 3], task, lambda x, e: f"err-{e}")

        assert results == ["ok-1", "err-bad", "ok-3"]

    def test_item_timeout(self):
        release = threading.Event()

        def task(name: str) -> str:
            if name == "slow":
                release.wait(timeout=5)
            return name

        executor: ConcurrentExecutor = ConcurrentExecutor(max_workers=2, item_timeout=0.2)
        try:
            results = executor.run_ordered(
                ["a", "slow", "c"], task, lambda name, e: f"timeout-{name}"
            )
        finally:
            release.set()

        assert results == ["a", "timeout-slow", "c"]

    def test_timeout_does_not_starve_queued_items(self):
        """单线程时卡住的条目超时后，排队的条目照常执行"""
        release = threading.Event()

        def task(name: str) -> str:
            if name == "slow":
                release.wait(timeout=5)
            return name

        executor: ConcurrentExecutor = ConcurrentExecutor(max_workers=1, item_timeout=0.3)
        try:
            results = executor.run_ordered(
                ["slow", "b", "c"], task, lambda name, e: f"timeout-{name}"
            )
        finally:
            release.set()

        assert results == ["timeout-slow", "b", "c"]

    def test_abandoned_item_cannot_commit(self):
        release = threading.Event()
        finished = threading.Event()
        outcome: dict[str, str] = {}

        def task(name: str) -> str:
            if name == "slow":
                release.wait(timeout=5)
                try:
                    raise_if_abandoned()
                    outcome[name] = "committed"
                except EncodeError:
                    outcome[name] = "abandoned"
                finally:
                    finished.set()
            else:
                raise_if_abandoned()
            return name

        executor: ConcurrentExecutor = ConcurrentExecutor(max_workers=1, item_timeout=0.2)
        try:
            results = executor.run_ordered(
                ["slow", "b"], task, lambda name, e: f"timeout-{name}"
            )
        finally:
            release.set()

        assert finished.wait(timeout=5)
        assert results == ["timeout-slow", "b"]
        assert outcome == {"slow": "abandoned"}

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            ConcurrentExecutor(max_workers=0)


class TestDecodePayload:
    """base64 负载解码测试"""

    def test_valid(self):
        assert decode_payload("aGVsbG8=") == b"hello"

    @pytest.mark.parametrize("data", ["abc", "not base64!!", "aGVs\nbG8="])
    def test_malformed(self, data: str):
        with pytest.raises(DecodeError):
            decode_payload(data)


class TestPathBatch:
    """路径批量测试"""

    def test_mixed_results(
        self, sample_images: dict[str, Path], temp_dir: Path, registry, make_config
    ):
        orchestrator = BatchOrchestrator(registry=registry)
        paths = [
            str(sample_images["png"]),
            str(temp_dir / "missing.png"),
            str(temp_dir / "README"),
            str(temp_dir / "anim.gif"),
            str(sample_images["jpeg"]),
        ]

        batch = orchestrator.compress_paths(paths, make_config())
        statuses = batch.statuses()

        assert [r.identifier for r in batch.results] == paths
        assert statuses[0] == "success"
        assert statuses[1].startswith("error: ")
        assert statuses[2] == "error: 文件没有扩展名"
        assert statuses[3] == "error: 不支持的格式: gif"
        assert statuses[4] == "success"
        assert batch.results[1].original_size == 0
        assert batch.get_success_count() == 2

    def test_parallel_preserves_order(self, sample_images: dict[str, Path], registry, make_config):
        orchestrator = BatchOrchestrator(registry=registry, max_workers=4)
        paths = [str(sample_images[key]) for key in ("png", "jpeg", "webp", "rgba")]

        batch = orchestrator.compress_paths(paths, make_config())

        assert [r.identifier for r in batch.results] == paths
        assert batch.statuses() == ["success"] * 4
        assert registry.tracked() == {}


class TestUploadBatch:
    """上传批量测试"""

    @pytest.fixture
    def orchestrator(self, registry: ScratchRegistry) -> BatchOrchestrator:
        return BatchOrchestrator(registry=registry, max_payload_bytes=64 * 1024)

    def _item(self, name: str, data: str, fmt: str, index: int, **kwargs) -> UploadItem:
        return UploadItem(name=name, data=data, format=fmt, source_index=index, **kwargs)

    def test_oversized_item_isolated(
        self,
        orchestrator: BatchOrchestrator,
        sample_images: dict[str, Path],
        output_dir: Path,
        make_config,
        encode_file,
        scratch_leftovers,
    ):
        png = encode_file(sample_images["png"])
        oversized = encode_file(self._write_blob(output_dir, 64 * 1024 + 1))
        items = [
            self._item("first.png", png, "png", 10),
            self._item("huge.png", oversized, "PNG", 11),
            self._item("third.png", png, "png", 12),
        ]

        batch = orchestrator.compress_uploads(items, make_config(), output_dir=output_dir)

        assert batch.statuses() == ["success", "file_too_large", "success"]
        assert [r.as_upload_row()[4] for r in batch.results] == [10, 11, 12]
        assert (output_dir / "first.png").exists()
        assert (output_dir / "third.png").exists()
        assert not (output_dir / "huge.png").exists()
        assert scratch_leftovers() == []

    def test_rejection_tags(
        self,
        orchestrator: BatchOrchestrator,
        sample_images: dict[str, Path],
        output_dir: Path,
        make_config,
        encode_file,
    ):
        png = encode_file(sample_images["png"])
        items = [
            self._item("anim.gif", png, "gif", 0),
            self._item("bad.png", "%%%not-base64%%%", "png", 1),
            self._item("garbage.png", "AAAAAAAA", "png", 2),
            self._item("..", png, "png", 3),
        ]

        batch = orchestrator.compress_uploads(items, make_config(), output_dir=output_dir)

        assert batch.statuses() == [
            "unsupported_format",
            "decode_failed",
            "compress_failed",
            "save_failed",
        ]
        assert all(r.original_size == 0 for r in batch.results)

    def test_missing_source_path(
        self,
        orchestrator: BatchOrchestrator,
        sample_images: dict[str, Path],
        make_config,
        encode_file,
    ):
        items = [self._item("a.png", encode_file(sample_images["png"]), "png", 5)]

        batch = orchestrator.compress_uploads(items, make_config())

        assert batch.results[0].as_upload_row() == ("a.png", 0, 0, "missing_source_path", 5)

    def test_overwrites_source_path(
        self,
        orchestrator: BatchOrchestrator,
        sample_images: dict[str, Path],
        make_config,
        encode_file,
    ):
        source = sample_images["jpeg"]
        original_size = source.stat().st_size
        items = [
            self._item(
                "photo.jpg", encode_file(source), "jpg", 0, source_path=source
            )
        ]

        batch = orchestrator.compress_uploads(items, make_config(quality_jpg=60))

        row = batch.results[0].as_upload_row()
        assert row[3] == "success"
        assert row[1] == original_size
        assert row[2] == source.stat().st_size

    def test_duplicate_names_do_not_collide(
        self,
        registry: ScratchRegistry,
        sample_images: dict[str, Path],
        output_dir: Path,
        make_config,
        encode_file,
    ):
        orchestrator = BatchOrchestrator(registry=registry, max_workers=2)
        items = [
            self._item("same.png", encode_file(sample_images["png"]), "png", 0),
            self._item("same.png", encode_file(sample_images["rgba"]), "png", 1),
        ]

        batch = orchestrator.compress_uploads(
            items, make_config(lossless=True), output_dir=output_dir
        )

        assert batch.statuses() == ["success", "success"]

    def test_resize_with_aspect_ratio(
        self,
        orchestrator: BatchOrchestrator,
        sample_images: dict[str, Path],
        output_dir: Path,
        make_config,
        encode_file,
    ):
        items = [self._item("wide.png", encode_file(sample_images["wide"]), "png", 0)]
        config = make_config(resize_width=40, resize_height=40)

        orchestrator.compress_uploads(
            items, config, maintain_aspect_ratio=True, output_dir=output_dir
        )

        with Image.open(output_dir / "wide.png") as img:
            assert img.size == (40, 20)

    def test_payload_at_cap_accepted(
        self,
        registry: ScratchRegistry,
        sample_images: dict[str, Path],
        output_dir: Path,
        make_config,
        encode_file,
    ):
        """负载恰好等于上限时接受，超出 1 字节时拒绝"""
        png = sample_images["png"]
        cap = png.stat().st_size
        data = encode_file(png)
        items = [self._item("exact.png", data, "png", 0)]

        accepted = BatchOrchestrator(registry=registry, max_payload_bytes=cap)
        rejected = BatchOrchestrator(registry=registry, max_payload_bytes=cap - 1)

        assert accepted.compress_uploads(
            items, make_config(), output_dir=output_dir
        ).statuses() == ["success"]
        assert rejected.compress_uploads(
            items, make_config(), output_dir=output_dir
        ).statuses() == ["file_too_large"]

    def test_timed_out_item_isolated(
        self,
        monkeypatch,
        registry: ScratchRegistry,
        sample_images: dict[str, Path],
        output_dir: Path,
        make_config,
        encode_file,
        scratch_leftovers,
    ):
        """超时条目计为失败，之后排队的条目照常完成，超时条目不会写出结果"""
        release = threading.Event()
        real_compress_file = batch_module.compress_file

        def slow_compress_file(source, *args, **kwargs):
            if Path(source).name == "slow.png":
                release.wait(timeout=5)
            return real_compress_file(source, *args, **kwargs)

        monkeypatch.setattr(batch_module, "compress_file", slow_compress_file)
        orchestrator = BatchOrchestrator(registry=registry, max_workers=1, item_timeout=0.5)
        png = encode_file(sample_images["png"])
        items = [
            self._item("slow.png", png, "png", 0),
            self._item("next.png", png, "png", 1),
        ]

        try:
            batch = orchestrator.compress_uploads(items, make_config(), output_dir=output_dir)
        finally:
            release.set()

        assert batch.statuses() == ["compress_failed", "success"]
        assert (output_dir / "next.png").exists()

        deadline = time.monotonic() + 5
        while registry.tracked() and time.monotonic() < deadline:
            time.sleep(0.05)
        assert registry.tracked() == {}
        assert scratch_leftovers() == []
        assert not (output_dir / "slow.png").exists()

    def test_scratch_creation_failure(
        self, temp_dir: Path, sample_images: dict[str, Path], make_config, encode_file
    ):
        blocker = temp_dir / "not-a-dir"
        blocker.write_bytes(b"")
        orchestrator = BatchOrchestrator(registry=ScratchRegistry(blocker))
        items = [
            self._item("a.png", encode_file(sample_images["png"]), "png", 0),
            self._item("b.png", encode_file(sample_images["png"]), "png", 1),
        ]

        batch = orchestrator.compress_uploads(items, make_config(), output_dir=temp_dir)

        assert batch.statuses() == ["save_failed", "save_failed"]

    @staticmethod
    def _write_blob(directory: Path, size: int) -> Path:
        path = directory / "blob.bin"
        path.write_bytes(b"\0" * size)
        return path
