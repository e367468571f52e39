import numpy as np

from mandelzoom import AnimationConfig, FrameRenderer, RenderStats, ZoomScheduler


class RecordingWriter:
    def __init__(self, ok=True):
        self.ok = ok
        self.frames = []

    def write(self, frame, index):
        self.frames.append((index, frame.copy()))
        return self.ok


def small_config(**overrides):
    values = dict(width=8, height=6, fps=4, end_zoom=1.5)
    values.update(overrides)
    return AnimationConfig(**values)


def test_run_hands_every_frame_to_writer_in_order():
    writer = RecordingWriter()
    seen = []
    stats = FrameRenderer(small_config(), writer, workers=2).run(on_frame=lambda plan, ok: seen.append((plan.index, ok)))

    assert [index for index, _ in writer.frames] == [0, 1, 2]
    assert seen == [(0, True), (1, True), (2, True)]
    for _, frame in writer.frames:
        assert frame.shape == (6, 8, 3)
        assert frame.dtype == np.uint8
    assert stats.frames == 3
    assert stats.persisted == 3
    assert stats.final_zoom >= 1.5


def test_writer_failures_do_not_stop_the_loop():
    writer = RecordingWriter(ok=False)
    stats = FrameRenderer(small_config(), writer, workers=1).run()
    assert len(writer.frames) == 3
    assert stats.frames == 3
    assert stats.persisted == 0
    assert stats.failed == 3
    assert "Frames not saved : 3" in stats.format_report()


def test_render_is_pure():
    config = small_config(width=12, height=10)
    renderer = FrameRenderer(config, RecordingWriter(), workers=3)
    plan = ZoomScheduler.from_config(config).advance()
    first = renderer.render(plan)
    second = renderer.render(plan)
    np.testing.assert_array_equal(first, second)
    assert renderer.scheduler.frame_index == 0


def test_render_of_interior_region_is_black():
    config = AnimationConfig(width=4, height=4, fps=30, end_zoom=2.0, x_center=-0.5, y_center=0.0, x_range=1e-3)
    renderer = FrameRenderer(config, RecordingWriter(), workers=2)
    plan = renderer.scheduler.advance()
    assert not renderer.render(plan).any()


def test_render_stats_report():
    stats = RenderStats(frames=4, persisted=4, final_zoom=2.5, x_center=-0.75, y_center=0.1, elapsed=2.0)
    assert stats.seconds_per_frame == 0.5
    report = stats.format_report()
    assert "Frames generated : 4" in report
    assert "Frames not saved" not in report
    assert RenderStats(0, 0, 1.0, 0.0, 0.0, 0.0).seconds_per_frame == 0.0
