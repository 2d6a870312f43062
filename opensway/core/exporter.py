"""
Trajectory Exporter - Exports sampled pin trajectories to various formats
"""

import csv
import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw

from .baker import TrajectorySample

Trajectories = Dict[str, Sequence[TrajectorySample]]

# Pin colors, cycled per pin
PALETTE = [
    (231, 76, 60),
    (52, 152, 219),
    (46, 204, 113),
    (241, 196, 15),
    (155, 89, 182),
    (230, 126, 34),
    (26, 188, 156),
    (236, 240, 241),
]
BACKGROUND = (24, 24, 28, 255)
CHAIN_COLOR = (200, 200, 200, 255)


class TrajectoryExporter:
    """Exports per-pin trajectories to JSON, CSV, PNG path plots and GIF previews"""

    @staticmethod
    def _check(trajectories: Trajectories) -> None:
        if not trajectories or not any(len(s) for s in trajectories.values()):
            raise ValueError("No trajectories to export")

    @classmethod
    def to_json(cls, trajectories: Trajectories, path: str | Path, frame_rate: Optional[float] = None) -> Path:
        """Export trajectories to JSON"""
        cls._check(trajectories)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            'frameRate': frame_rate,
            'pins': {
                name: [sample.to_dict() for sample in samples]
                for name, samples in trajectories.items()
            },
        }
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)

        return path

    @classmethod
    def to_csv(cls, trajectories: Trajectories, path: str | Path) -> Path:
        """Export trajectories to CSV, one row per pin per sample"""
        cls._check(trajectories)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['pin', 'time', 'x', 'y'])
            for name, samples in trajectories.items():
                for sample in samples:
                    writer.writerow([name, repr(sample.time), repr(sample.value.x), repr(sample.value.y)])

        return path

    @staticmethod
    def _projection(trajectories: Trajectories, size: Tuple[int, int], margin: int):
        """Map document space to image space, preserving aspect ratio"""
        points = np.array([
            sample.value.to_tuple()
            for samples in trajectories.values()
            for sample in samples
        ], dtype=float)
        lo = points.min(axis=0)
        hi = points.max(axis=0)
        span = np.maximum(hi - lo, 1e-6)

        width, height = size
        scale = min((width - 2 * margin) / span[0], (height - 2 * margin) / span[1])
        offset = np.array([width, height]) / 2.0 - (lo + hi) / 2.0 * scale

        def project(value) -> Tuple[float, float]:
            x, y = np.array(value.to_tuple()) * scale + offset
            return float(x), float(y)

        return project

    @classmethod
    def to_png(
        cls,
        trajectories: Trajectories,
        path: str | Path,
        size: Tuple[int, int] = (512, 512),
        margin: int = 24,
    ) -> Path:
        """Plot every pin's path over time into a PNG"""
        cls._check(trajectories)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        project = cls._projection(trajectories, size, margin)
        img = Image.new('RGBA', size, BACKGROUND)
        draw = ImageDraw.Draw(img)

        for i, samples in enumerate(trajectories.values()):
            if not samples:
                continue
            color = PALETTE[i % len(PALETTE)] + (255,)
            line = [project(s.value) for s in samples]
            if len(line) > 1:
                draw.line(line, fill=color, width=2)
            x, y = line[0]
            draw.ellipse([x - 3, y - 3, x + 3, y + 3], fill=color)

        img.save(path, 'PNG')
        return path

    @classmethod
    def render_frames(
        cls,
        trajectories: Trajectories,
        size: Tuple[int, int] = (256, 256),
        margin: int = 16,
    ) -> List[Image.Image]:
        """Render the chain at each sample time as a separate image"""
        cls._check(trajectories)
        project = cls._projection(trajectories, size, margin)
        series = [s for s in trajectories.values() if s]
        frame_count = min(len(s) for s in series)

        frames = []
        for frame in range(frame_count):
            img = Image.new('RGBA', size, BACKGROUND)
            draw = ImageDraw.Draw(img)
            joints = [project(s[frame].value) for s in series]
            if len(joints) > 1:
                draw.line(joints, fill=CHAIN_COLOR, width=2)
            for i, (x, y) in enumerate(joints):
                color = PALETTE[i % len(PALETTE)] + (255,)
                draw.ellipse([x - 4, y - 4, x + 4, y + 4], fill=color)
            frames.append(img)
        return frames

    @classmethod
    def to_gif(
        cls,
        trajectories: Trajectories,
        path: str | Path,
        frame_rate: float = 24.0,
        size: Tuple[int, int] = (256, 256),
        loop: int = 0,
    ) -> Path:
        """Export an animated preview of the chain to GIF"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        frames = cls.render_frames(trajectories, size)
        images = [img.convert('RGB').convert('P', palette=Image.Palette.ADAPTIVE, colors=255) for img in frames]
        duration = max(1, int(round(1000.0 / frame_rate)))

        images[0].save(
            path,
            save_all=True,
            append_images=images[1:],
            duration=duration,
            loop=loop,
        )

        return path
