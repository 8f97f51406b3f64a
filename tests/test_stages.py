"""Tests for the manifest stage."""

import asyncio
from pathlib import Path

import pytest

from pathforge.config import ManifestStageConfig, ServerEnvironment
from pathforge.core.errors import (
    ManifestKeyNotFoundError,
    ManifestParseError,
)
from pathforge.core.json_canonical import canonical_json_bytes, canonical_json_loads
from pathforge.core.manifest import Manifest, ManifestLoader
from pathforge.pipelines.events import FileEventKind, PipelineItem
from pathforge.pipelines.stage import StageType
from pathforge.pipelines.stages import (
    ManifestStage,
    create_stage_manifest,
    create_stage_manifest_from_config,
)

WAIT = 0.05


def make_event(event: str, origin: str, dest: str | None = None) -> PipelineItem:
    history = [origin] if dest is None else [origin, dest]
    return PipelineItem(
        path=dest or origin,
        contents=b"export default 1",
        event=FileEventKind(event),
        history=history,
    )


class TestCreateStageManifest:
    """Tests for create_stage_manifest."""

    def test_fresh_manifest_without_snapshot(self, tmp_path: Path):
        stage = asyncio.run(create_stage_manifest(True, tmp_path, "development"))
        assert isinstance(stage, ManifestStage)
        assert stage.stage_type == StageType.MANIFEST
        assert len(stage.manifest) == 0

    def test_loads_existing_snapshot(self, tmp_path: Path):
        """Outside production an existing snapshot should be loaded."""
        prior = Manifest.create()
        prior.set_entry("app/a.ts", "pages/a.ts")
        asyncio.run(ManifestLoader.save(prior, tmp_path / "_manifest.json"))

        stage = asyncio.run(
            create_stage_manifest(True, tmp_path, ServerEnvironment.DEVELOPMENT)
        )
        assert stage.manifest.get_by_key("app/a.ts") == "pages/a.ts"

    def test_production_ignores_snapshot(self, tmp_path: Path):
        """Production should always start empty."""
        prior = Manifest.create()
        prior.set_entry("app/a.ts", "pages/a.ts")
        asyncio.run(ManifestLoader.save(prior, tmp_path / "_manifest.json"))

        stage = asyncio.run(create_stage_manifest(True, tmp_path, "production"))
        assert len(stage.manifest) == 0

    def test_custom_manifest_path(self, tmp_path: Path):
        prior = Manifest.create()
        prior.set_entry("a", "b")
        asyncio.run(ManifestLoader.save(prior, tmp_path / "meta" / "paths.json"))

        stage = asyncio.run(
            create_stage_manifest(True, tmp_path, "dev", manifest_path="meta/paths.json")
        )
        assert stage.manifest.get_by_key("a") == "b"
        assert stage.manifest_path == "meta/paths.json"

    def test_corrupt_snapshot_is_fatal(self, tmp_path: Path):
        """A present but corrupt snapshot should fail stage creation."""
        (tmp_path / "_manifest.json").write_text("garbage", encoding="utf-8")
        with pytest.raises(ManifestParseError):
            asyncio.run(create_stage_manifest(True, tmp_path, "development"))

    @pytest.mark.parametrize("content", ["{}", '{"keys": {"a": "x"}}'])
    def test_partial_snapshot_is_fatal(self, content, tmp_path: Path):
        """A snapshot missing a map should fail startup, not start empty."""
        (tmp_path / "_manifest.json").write_text(content, encoding="utf-8")
        with pytest.raises(ManifestParseError):
            asyncio.run(create_stage_manifest(True, tmp_path, "development"))

    def test_from_config(self, tmp_path: Path):
        config = ManifestStageConfig(
            build_folder=str(tmp_path),
            write_manifest_file=False,
            debounce_seconds=0.1,
            max_events=3,
        )
        stage = asyncio.run(create_stage_manifest_from_config(config))
        assert stage.write_manifest_file is False
        assert stage.debounce_seconds == 0.1


class TestManifestStageTransform:
    """Tests for per-event behavior."""

    def run_events(self, stage: ManifestStage, items, settle: float = WAIT * 4):
        pushed = []

        async def scenario():
            out = stage.start(pushed.append)
            errors = []
            for item in items:
                try:
                    out.transform(item)
                except ManifestKeyNotFoundError as e:
                    errors.append(e)
            await asyncio.sleep(settle)
            return out, errors

        out, errors = asyncio.run(scenario())
        return pushed, out, errors

    def test_ready_exposes_live_manifest(self):
        stage = ManifestStage(Manifest.create(), write_manifest_file=False)
        pushed, out, _ = self.run_events(stage, [make_event("add", "app/a.ts", "pages/a.ts")])
        assert out.ready["manifest"] is stage.manifest
        assert out.ready["manifest"].get_by_value("pages/a.ts") == "app/a.ts"

    def test_add_change_set_entry(self):
        """add and change should map history[0] to the current path."""
        stage = ManifestStage(Manifest.create(), write_manifest_file=False)
        self.run_events(
            stage,
            [
                make_event("add", "app/pages/index.tsx", "pages/index.tsx"),
                make_event("change", "app/api/bar.ts", "pages/api/bar.ts"),
            ],
        )
        assert stage.manifest.get_by_key("app/pages/index.tsx") == "pages/index.tsx"
        assert stage.manifest.get_by_value("pages/api/bar.ts") == "app/api/bar.ts"

    def test_unlink_removes_entry(self):
        stage = ManifestStage(Manifest.create(), write_manifest_file=False)
        self.run_events(
            stage,
            [
                make_event("add", "app/a.ts", "pages/a.ts"),
                make_event("unlink", "app/a.ts", "pages/a.ts"),
            ],
        )
        assert len(stage.manifest) == 0
        assert stage.manifest.get_events() == ("set:pages/a.ts", "del:app/a.ts")

    def test_unlink_dir_removes_entry(self):
        stage = ManifestStage(Manifest.create(), write_manifest_file=False)
        self.run_events(
            stage,
            [
                make_event("add", "app/api", "pages/api"),
                make_event("unlinkDir", "app/api", "pages/api"),
            ],
        )
        assert stage.manifest.get_by_key("app/api") is None

    def test_forwards_every_event_unchanged(self):
        """Every event should be pushed once, as the same object."""
        stage = ManifestStage(Manifest.create(), write_manifest_file=False)
        items = [
            make_event("add", "app/a.ts", "pages/a.ts"),
            make_event("change", "app/a.ts", "pages/a.ts"),
            make_event("unlink", "app/a.ts", "pages/a.ts"),
        ]
        pushed, _, _ = self.run_events(stage, items)
        assert len(pushed) == 3
        assert all(p is i for p, i in zip(pushed, items))
        assert pushed[0].contents == b"export default 1"

    def test_not_found_raised_after_forwarding(self):
        """Unlinking an unknown file should forward it, then raise."""
        stage = ManifestStage(Manifest.create(), write_manifest_file=False)
        item = make_event("unlink", "app/ghost.ts", "pages/ghost.ts")
        pushed, _, errors = self.run_events(stage, [item])

        assert pushed == [item]
        assert len(errors) == 1
        assert errors[0].key == "app/ghost.ts"

    def test_burst_emits_one_snapshot(self):
        """Events within the window should produce one compact snapshot."""
        stage = ManifestStage(Manifest.create(), debounce_seconds=WAIT)
        items = [make_event("add", f"app/{i}.ts", f"pages/{i}.ts") for i in range(4)]
        pushed, _, _ = self.run_events(stage, items)

        snapshots = [p for p in pushed if p.event is None]
        assert len(pushed) == 5
        assert len(snapshots) == 1
        assert snapshots[0].path == "_manifest.json"
        content = snapshots[0].contents.decode("utf-8")
        assert "\n" not in content
        assert canonical_json_loads(content)["keys"] == {
            f"app/{i}.ts": f"pages/{i}.ts" for i in range(4)
        }

    def test_snapshot_bytes_are_canonical(self):
        """Snapshot contents should be sorted compact JSON of the manifest."""
        stage = ManifestStage(Manifest.create(), debounce_seconds=WAIT)
        items = [
            make_event("add", "app/b.ts", "pages/b.ts"),
            make_event("add", "app/a.ts", "pages/a.ts"),
        ]
        pushed, _, _ = self.run_events(stage, items)
        assert pushed[-1].contents == canonical_json_bytes(stage.manifest.to_object())
        assert pushed[-1].contents.startswith(b'{"keys":{"app/a.ts":"pages/a.ts","app/b.ts"')

    def test_snapshot_captured_at_schedule_time(self):
        """Mutations after the last event should not leak into the snapshot."""
        stage = ManifestStage(Manifest.create(), debounce_seconds=WAIT)
        pushed = []

        async def scenario():
            out = stage.start(pushed.append)
            out.transform(make_event("add", "app/a.ts", "pages/a.ts"))
            # Direct mutation without an event does not reschedule
            stage.manifest.set_entry("app/late.ts", "pages/late.ts")
            await asyncio.sleep(WAIT * 4)

        asyncio.run(scenario())
        snapshot = canonical_json_loads(pushed[-1].contents)
        assert snapshot["keys"] == {"app/a.ts": "pages/a.ts"}

    def test_snapshot_after_failed_unlink_not_emitted(self):
        """A failed removal aborts the event before a snapshot is scheduled."""
        stage = ManifestStage(Manifest.create(), debounce_seconds=WAIT)
        pushed, _, errors = self.run_events(stage, [make_event("unlink", "app/x.ts")])
        assert len(errors) == 1
        assert [p.event for p in pushed] == [FileEventKind.UNLINK]

    def test_no_snapshot_when_disabled(self):
        stage = ManifestStage(Manifest.create(), write_manifest_file=False, debounce_seconds=WAIT)
        pushed, _, _ = self.run_events(stage, [make_event("add", "app/a.ts")])
        assert [p.path for p in pushed] == ["app/a.ts"]

    def test_close_flushes_pending_snapshot(self):
        stage = ManifestStage(Manifest.create(), debounce_seconds=10)
        pushed = []

        async def scenario():
            out = stage.start(pushed.append)
            out.transform(make_event("add", "app/a.ts", "pages/a.ts"))
            stage.close()

        asyncio.run(scenario())
        assert [p.path for p in pushed] == ["pages/a.ts", "_manifest.json"]

    def test_close_without_flush_drops_snapshot(self):
        stage = ManifestStage(Manifest.create(), debounce_seconds=10)
        pushed = []

        async def scenario():
            out = stage.start(pushed.append)
            out.transform(make_event("add", "app/a.ts", "pages/a.ts"))
            stage.close(flush=False)

        asyncio.run(scenario())
        assert [p.path for p in pushed] == ["pages/a.ts"]

    def test_close_before_start(self):
        """Closing an unstarted stage should be a no-op."""
        ManifestStage(Manifest.create()).close()
