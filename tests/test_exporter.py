import csv
import json

import pytest
from PIL import Image

from opensway.core.baker import TrajectorySample
from opensway.core.exporter import TrajectoryExporter
from opensway.core.utils import Vec2


@pytest.fixture
def trajectories():
    return {
        'root': [TrajectorySample(i / 4, Vec2(0.0, 0.0)) for i in range(5)],
        'tip': [TrajectorySample(i / 4, Vec2(i * 3.0, 40.0 + i)) for i in range(5)],
    }


def test_to_json(tmp_path, trajectories):
    path = TrajectoryExporter.to_json(trajectories, tmp_path / "out" / "sway.json", frame_rate=4.0)
    data = json.loads(path.read_text())
    assert data['frameRate'] == 4.0
    assert set(data['pins']) == {'root', 'tip'}
    assert data['pins']['tip'][2] == {'time': 0.5, 'value': [6.0, 42.0]}


def test_to_csv(tmp_path, trajectories):
    path = TrajectoryExporter.to_csv(trajectories, tmp_path / "sway.csv")
    with open(path, newline='') as f:
        rows = list(csv.reader(f))
    assert rows[0] == ['pin', 'time', 'x', 'y']
    assert len(rows) == 1 + 10
    assert rows[-1][0] == 'tip'
    assert float(rows[-1][2]) == 12.0


def test_to_png(tmp_path, trajectories):
    path = TrajectoryExporter.to_png(trajectories, tmp_path / "paths.png", size=(200, 150))
    with Image.open(path) as img:
        assert img.size == (200, 150)
        assert img.getcolors(maxcolors=10000) is not None
        assert len(img.getcolors(maxcolors=10000)) > 1


def test_render_frames(trajectories):
    frames = TrajectoryExporter.render_frames(trajectories, size=(64, 64))
    assert len(frames) == 5
    assert all(frame.size == (64, 64) for frame in frames)


def test_to_gif(tmp_path, trajectories):
    path = TrajectoryExporter.to_gif(trajectories, tmp_path / "chain.gif", frame_rate=4.0)
    with Image.open(path) as img:
        assert img.format == 'GIF'
        assert img.is_animated


@pytest.mark.parametrize("export", [
    TrajectoryExporter.to_json,
    TrajectoryExporter.to_csv,
    TrajectoryExporter.to_png,
    TrajectoryExporter.to_gif,
])
def test_empty_input_is_rejected(tmp_path, export):
    with pytest.raises(ValueError):
        export({}, tmp_path / "empty.out")
    with pytest.raises(ValueError):
        export({'a': []}, tmp_path / "empty.out")
