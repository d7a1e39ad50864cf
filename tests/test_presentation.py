import asyncio

import numpy as np

from geovision.models import CANONICAL_STEPS, LayerKind, PresentationStep
from geovision.presentation import SitePresentation

from conftest import RecordingSink, write_site


def open_site(root, sink=None):
    async def run():
        presentation = SitePresentation(str(root), sink=sink)
        await presentation.open()
        await presentation.wait_until_loaded()
        return presentation
    return asyncio.run(run())


def test_full_site_walkthrough(site_dir):
    presentation = open_site(site_dir)
    engine = presentation.engine
    try:
        assert engine.steps == list(CANONICAL_STEPS)
        for index, step in enumerate(engine.steps):
            engine.go_to(index)
            assert engine.layer_status(step.layer) == "loaded", step
            assert engine.visible_kinds == {step.layer}
            assert len(presentation.sink) == len(engine.visible_names)
    finally:
        presentation.close()


def test_drillhole_centre_and_ore_body_alignment(site_dir):
    sink = RecordingSink()
    presentation = open_site(site_dir, sink)
    engine = presentation.engine
    try:
        # mean of the six segment reference points
        assert np.allclose(engine.center, (1050.0, 2050.0, 310.0))
        engine.go_to(engine.steps.index(PresentationStep.oreBody))
        ore = sink.nodes["oreBody"]
        assert np.allclose(ore.transform[:3, 3], (-1050.0, -310.0, -2050.0))
    finally:
        presentation.close()


def test_sparse_site_only_loads_what_is_present(tmp_path):
    write_site(tmp_path, layers=("magnetic",))
    presentation = open_site(tmp_path)
    try:
        assert presentation.engine.steps == [PresentationStep.satellite,
                                             PresentationStep.magneticMap]
        assert presentation.drillhole_index.data is None
        assert np.array_equal(presentation.engine.center, np.zeros(3))
    finally:
        presentation.close()


def test_corrupt_drillhole_records_fail_gracefully(site_dir):
    (site_dir / "drillholes" / "lithology.json").write_text("{oops")
    sink = RecordingSink()
    presentation = open_site(site_dir, sink)
    engine = presentation.engine
    try:
        engine.go_to(engine.steps.index(PresentationStep.lithologyData))
        assert engine.visible_names == []
        assert engine.snapshot()["status"] == "failed"
        # the ore body is still published, at the zero centre
        engine.go_to(engine.steps.index(PresentationStep.oreBody))
        assert np.allclose(sink.nodes["oreBody"].transform, np.eye(4))
    finally:
        presentation.close()


def test_corrupt_satellite_image_leaves_first_step_empty(site_dir):
    (site_dir / "satellite.png").write_bytes(b"\x89PNG broken")
    presentation = open_site(site_dir)
    engine = presentation.engine
    try:
        assert engine.visible_names == []
        assert engine.layer_status(LayerKind.satellite) == "failed"
        engine.go_next()
        assert engine.visible_kinds == {LayerKind.topography}
    finally:
        presentation.close()


def test_missing_satellite_is_reported_as_failed(tmp_path):
    write_site(tmp_path, layers=("geology",))
    (tmp_path / "satellite.png").unlink()
    presentation = open_site(tmp_path)
    try:
        assert presentation.engine.steps[0] is PresentationStep.satellite
        assert presentation.engine.layer_status(LayerKind.satellite) == "failed"
    finally:
        presentation.close()


def test_close_releases_every_renderable(site_dir):
    sink = RecordingSink()
    presentation = open_site(site_dir, sink)
    assets = list(presentation.engine.data.assets.values())
    presentation.close()
    assert sink.nodes == {}
    assert all(asset.disposed for asset in assets)
    assert presentation.engine.closed


def test_close_cancels_pending_loads(site_dir):
    async def run():
        presentation = SitePresentation(str(site_dir), sink=RecordingSink())
        await presentation.open()
        tasks = list(presentation._tasks)
        presentation.close()
        await asyncio.gather(*tasks, return_exceptions=True)
        return presentation, tasks

    presentation, tasks = asyncio.run(run())
    assert tasks
    assert all(task.cancelled() for task in tasks)
    assert presentation.engine.closed
    assert presentation.engine.data.assets == {}
