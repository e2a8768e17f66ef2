import contextlib
import functools
import logging
import math
import multiprocessing
import warnings
from numbers import Integral
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from tqdm import tqdm

from .config import (
    DEFAULT_OVERLAP_SIZE,
    DEFAULT_PATCH_SIZE,
    DEFAULT_PATH_COST_WEIGHT,
    DEFAULT_TOLERANCE,
    DEFAULT_WORKERS,
    validate_patch_geometry,
    validate_path_cost_weight,
    validate_tolerance,
    validate_workers,
)
from .exceptions import InvalidConfigurationError, InvalidDimensionError, OutputSizeWarning
from .seam import SeamPathFinder

logger = logging.getLogger(__name__)


# Texture held by each pool process; set once by _init_distance_worker.
_worker_texture = None


def _init_distance_worker(texture):
    """Pool initializer: keeps the source texture in the worker process."""
    global _worker_texture
    _worker_texture = texture


# Top-level worker for multiprocessing to fill a block of DistanceMap rows.
# This must be a top-level function for pickling by multiprocessing.
def _top_level_worker_distance_rows(y_range, left_band, top_band,
                                    patch_size, overlap_size, texture=None):
    """Computes overlap SSD for every candidate whose top row lies in y_range.

    Args:
        y_range: (start, stop) of candidate top rows.
        left_band: Canvas left overlap (patch_size, overlap_size, C) or None.
        top_band: Canvas top overlap (overlap_size, patch_size, C) or None.
        texture: Source texture (H, W, C) in int64 or float64. Defaults to
            the texture stored by the pool initializer.

    Returns:
        The start row and a (stop - start, W - patch_size + 1) block of SSDs.
    """
    if texture is None:
        texture = _worker_texture
    y_start, y_stop = y_range
    width = texture.shape[1]
    n_x = width - patch_size + 1
    block = np.zeros((y_stop - y_start, n_x), dtype=np.float64)

    # Bands laid out like sliding_window_view output: (rows, 1, C, window)
    left_t = left_band.transpose(0, 2, 1)[:, None] if left_band is not None else None
    top_t = top_band.transpose(0, 2, 1)[:, None] if top_band is not None else None

    for i, y in enumerate(range(y_start, y_stop)):
        total = np.zeros(n_x, dtype=texture.dtype)
        if left_t is not None:
            strip = texture[y:y + patch_size, :n_x - 1 + overlap_size]
            diff = sliding_window_view(strip, overlap_size, axis=1) - left_t
            total += np.sum(diff * diff, axis=(0, 2, 3))
        if top_t is not None:
            strip = texture[y:y + overlap_size]
            diff = sliding_window_view(strip, patch_size, axis=1) - top_t
            total += np.sum(diff * diff, axis=(0, 2, 3))
        block[i] = total
    return y_start, block


def compute_output_grid(requested: int, patch_size: int, overlap_size: int) -> Tuple[int, int]:
    """Rounds a requested length to the nearest patch grid.

    Returns:
        (number of patches along the axis, achievable length in pixels)
    """
    step = validate_patch_geometry(patch_size, overlap_size)
    # Round half up so 2.5 patches become 3
    patches = max(0, int(math.floor((requested - patch_size) / step + 0.5)))
    return patches + 1, patches * step + patch_size


class QuiltSynthesizer:
    """Implements Image Quilting texture synthesis with minimum-error seams."""

    def __init__(self, texture: np.ndarray,
                 patch_size: int = DEFAULT_PATCH_SIZE,
                 overlap_size: int = DEFAULT_OVERLAP_SIZE,
                 allow_lateral_seam_movement: bool = False,
                 path_cost_weight: float = DEFAULT_PATH_COST_WEIGHT,
                 tolerance: float = DEFAULT_TOLERANCE,
                 rng=None,
                 workers: int = DEFAULT_WORKERS,
                 seam_border_cells: bool = False,
                 snapshot: Optional[Callable[[str, np.ndarray], None]] = None):
        """Initializes the synthesizer for one source texture.

        Args:
            texture: Source texture, (H, W, C) or (H, W). Never modified.
            patch_size: Side of the square patches.
            overlap_size: Width of the band shared with the top/left neighbours.
            allow_lateral_seam_movement: Let seams travel sideways inside a row.
            path_cost_weight: Weight of seam cost in candidate ranking, in [0, 1].
                Reserved; candidates are ranked by overlap SSD only.
            tolerance: Candidates with error up to (1 + tolerance) times the
                minimum are sampled uniformly. 0.1 gives the classic 1.1 factor.
            rng: Seed, numpy Generator, or any object with an
                ``integers(low, high)`` method used for every random choice.
            workers: Processes used to scan candidate patches for each cell.
            seam_border_cells: Cut first-row/first-column patches along a seam
                instead of pasting their shared band verbatim.
            snapshot: Optional callback receiving ("seed", canvas) after the
                first patch and ("complete", canvas) at the end.
        """
        self.step = validate_patch_geometry(patch_size, overlap_size)
        validate_path_cost_weight(path_cost_weight)
        validate_tolerance(tolerance)
        validate_workers(workers)

        texture = np.asarray(texture)
        self._squeeze = texture.ndim == 2
        if self._squeeze:
            texture = texture[:, :, None]
        elif texture.ndim != 3:
            raise InvalidConfigurationError(
                f"Texture must be (H, W) or (H, W, C), got shape {texture.shape}"
            )
        h_input, w_input, _ = texture.shape
        if patch_size > min(h_input, w_input):
            raise InvalidConfigurationError(
                f"Patch size {patch_size} exceeds texture size {w_input}x{h_input}"
            )

        self.texture = texture
        # Integer textures are compared exactly so identical bands score 0
        work_dtype = np.int64 if np.issubdtype(texture.dtype, np.integer) else np.float64
        self._work = texture.astype(work_dtype)

        self.patch_size = patch_size
        self.overlap_size = overlap_size
        self.allow_lateral_seam_movement = allow_lateral_seam_movement
        self.path_cost_weight = path_cost_weight
        self.tolerance = tolerance
        self.workers = workers
        self.seam_border_cells = seam_border_cells
        self.snapshot = snapshot
        self.rng = self._make_rng(rng)

        self.placements: Dict[Tuple[int, int], Tuple[int, int]] = {}
        self.seams: List[np.ndarray] = []

        if path_cost_weight > 0:
            logger.debug("path_cost_weight=%.3f is stored but not applied to candidate ranking",
                         path_cost_weight)

    @staticmethod
    def _make_rng(rng):
        if rng is None or isinstance(rng, (Integral, np.random.SeedSequence)):
            return np.random.default_rng(rng)
        return rng

    def synthesize(self, requested_width: int, requested_height: int) -> np.ndarray:
        """Synthesizes a canvas as close as possible to the requested size.

        Raises:
            InvalidDimensionError: If either requested side is below patch_size.
        """
        if requested_width < self.patch_size or requested_height < self.patch_size:
            raise InvalidDimensionError(
                f"Output size {requested_width}x{requested_height} is smaller than "
                f"one patch ({self.patch_size}px)"
            )

        num_cols, ok_width = compute_output_grid(requested_width, self.patch_size, self.overlap_size)
        num_rows, ok_height = compute_output_grid(requested_height, self.patch_size, self.overlap_size)
        if ok_width != requested_width or ok_height != requested_height:
            warnings.warn(
                f"Output size {requested_width}x{requested_height} would need partial patches; "
                f"using {ok_width}x{ok_height} instead.",
                OutputSizeWarning,
                stacklevel=2,
            )

        logger.info("Synthesizing %dx%d patches (patch: %dpx, overlap: %dpx) into %dx%d canvas",
                    num_rows, num_cols, self.patch_size, self.overlap_size, ok_width, ok_height)

        canvas = np.zeros((ok_height, ok_width, self.texture.shape[2]), dtype=self.texture.dtype)
        self.placements = {}
        self.seams = []

        self._seed(canvas)
        if self.snapshot is not None:
            self.snapshot("seed", self._output(canvas.copy()))

        pool_context = (self.make_pool() if self.workers > 1
                        else contextlib.nullcontext())
        with pool_context as pool:
            # Quilt patches in raster scan order (left-to-right, top-to-bottom)
            for row in tqdm(range(num_rows), desc="Quilting rows"):
                for col in range(num_cols):
                    if row == 0 and col == 0:
                        continue
                    distances = self.distance_map(canvas, row, col, pool=pool)
                    source = self.select_candidate(distances)
                    self.fill_patch(canvas, row, col, source)

        result = self._output(canvas)
        if self.snapshot is not None:
            self.snapshot("complete", result)
        return result

    def _output(self, canvas: np.ndarray) -> np.ndarray:
        return canvas[:, :, 0] if self._squeeze else canvas

    def _seed(self, canvas: np.ndarray) -> None:
        """Copies a uniformly random texture window into the top-left cell."""
        h_input, w_input, _ = self.texture.shape
        y = int(self.rng.integers(0, h_input - self.patch_size + 1))
        x = int(self.rng.integers(0, w_input - self.patch_size + 1))
        canvas[:self.patch_size, :self.patch_size] = \
            self.texture[y:y + self.patch_size, x:x + self.patch_size]
        self.placements[(0, 0)] = (y, x)
        logger.debug("Seeded top-left cell from texture (%d, %d)", y, x)

    def make_pool(self):
        """Process pool whose workers each hold a copy of the texture.

        Only the overlap bands travel with each task, so the texture is sent
        once per worker instead of once per task.
        """
        return multiprocessing.Pool(self.workers,
                                    initializer=_init_distance_worker,
                                    initargs=(self._work,))

    def distance_map(self, canvas: np.ndarray, row: int, col: int, pool=None) -> np.ndarray:
        """Overlap SSD of every candidate source patch for grid cell (row, col).

        Entry [y, x] sums the squared differences between the candidate with
        top-left (y, x) and the canvas over the left band (if col > 0) and the
        top band (if row > 0). A `pool` must come from make_pool().
        """
        if canvas.ndim == 2:
            canvas = canvas[:, :, None]
        start_y, start_x = row * self.step, col * self.step
        p, o = self.patch_size, self.overlap_size

        left_band = top_band = None
        if col > 0:
            left_band = canvas[start_y:start_y + p, start_x:start_x + o].astype(self._work.dtype)
        if row > 0:
            top_band = canvas[start_y:start_y + o, start_x:start_x + p].astype(self._work.dtype)

        h_input, w_input, _ = self._work.shape
        n_y, n_x = h_input - p + 1, w_input - p + 1
        worker = functools.partial(_top_level_worker_distance_rows,
                                   left_band=left_band,
                                   top_band=top_band,
                                   patch_size=p,
                                   overlap_size=o)

        if pool is None:
            _, distances = worker((0, n_y), texture=self._work)
            return distances

        # Each worker fills a disjoint block of rows
        bounds = np.linspace(0, n_y, min(n_y, self.workers * 4) + 1).astype(int)
        ranges = [(int(a), int(b)) for a, b in zip(bounds[:-1], bounds[1:]) if b > a]
        distances = np.empty((n_y, n_x), dtype=np.float64)
        for y_start, block in pool.map(worker, ranges):
            distances[y_start:y_start + block.shape[0]] = block
        return distances

    def select_candidate(self, distances: np.ndarray) -> Tuple[int, int]:
        """Picks a source top-left (y, x) uniformly among near-best candidates."""
        best_val = float(np.min(distances))
        threshold = best_val * (1 + self.tolerance)
        ys, xs = np.nonzero((distances >= 0) & (distances <= threshold))
        choice = int(self.rng.integers(0, len(ys)))
        return int(ys[choice]), int(xs[choice])

    def fill_patch(self, canvas: np.ndarray, row: int, col: int, source: Tuple[int, int]) -> None:
        """Composites the source patch at `source` into grid cell (row, col)."""
        if canvas.ndim == 2:
            canvas = canvas[:, :, None]
        p = self.patch_size
        start_y, start_x = row * self.step, col * self.step
        src_y, src_x = source
        patch = self.texture[src_y:src_y + p, src_x:src_x + p]
        cell = canvas[start_y:start_y + p, start_x:start_x + p]

        if row > 0 and col > 0:
            take_source = self._corner_cut(cell, patch, start_y, start_x)
        elif self.seam_border_cells:
            take_source = self._border_cut(cell, patch, start_y, start_x, vertical=(row == 0))
        else:
            # Single neighbour: paste the whole patch, shared band included
            take_source = np.ones((p, p), dtype=bool)

        cell[take_source] = patch[take_source]
        self.placements[(row, col)] = (src_y, src_x)
        logger.debug("Cell (%d, %d) <- texture (%d, %d)", row, col, src_y, src_x)

    def _error_surface(self, canvas_band: np.ndarray, source_band: np.ndarray) -> np.ndarray:
        """Squared difference per pixel, summed over channels."""
        diff = canvas_band.astype(self._work.dtype) - source_band.astype(self._work.dtype)
        return np.sum(diff * diff, axis=2).astype(np.float64)

    def _left_finder(self, cell, patch) -> SeamPathFinder:
        # Flipped so row 0 is the bottom edge of the patch
        surface = self._error_surface(cell[:, :self.overlap_size], patch[:, :self.overlap_size])
        return SeamPathFinder(surface[::-1], allow_lateral=self.allow_lateral_seam_movement)

    def _top_finder(self, cell, patch) -> SeamPathFinder:
        # Transposed and flipped so row 0 is the right edge of the patch
        surface = self._error_surface(cell[:self.overlap_size], patch[:self.overlap_size])
        return SeamPathFinder(surface.T[::-1], allow_lateral=self.allow_lateral_seam_movement)

    def _apply_left_seam(self, mask, path, start_y, start_x) -> None:
        """Keeps canvas pixels left of a vertical seam given in finder coordinates."""
        last = self.patch_size - 1
        boundary = {}
        for r, c in path:
            y = last - r
            boundary[y] = min(c, boundary.get(y, c))
        for y, c in boundary.items():
            mask[y, :c] = False
        self.seams.append(np.array([(start_x + c, start_y + last - r) for r, c in path], dtype=np.int32))

    def _apply_top_seam(self, mask, path, start_y, start_x) -> None:
        """Keeps canvas pixels above a horizontal seam given in finder coordinates."""
        last = self.patch_size - 1
        boundary = {}
        for r, c in path:
            x = last - r
            boundary[x] = min(c, boundary.get(x, c))
        for x, c in boundary.items():
            mask[:c, x] = False
        self.seams.append(np.array([(start_x + last - r, start_y + c) for r, c in path], dtype=np.int32))

    def _border_cut(self, cell, patch, start_y, start_x, vertical: bool) -> np.ndarray:
        """Mask (True = take source) for a cell with a single neighbour."""
        last = self.patch_size - 1
        mask = np.ones((self.patch_size, self.patch_size), dtype=bool)
        if vertical:
            finder = self._left_finder(cell, patch)
            path = finder.trace(last, finder.best_end_column())
            self._apply_left_seam(mask, path, start_y, start_x)
        else:
            finder = self._top_finder(cell, patch)
            path = finder.trace(last, finder.best_end_column())
            self._apply_top_seam(mask, path, start_y, start_x)
        return mask

    def _corner_cut(self, cell, patch, start_y, start_x) -> np.ndarray:
        """Mask (True = take source) for a cell with top and left neighbours.

        Both seams run from the crossing point inside the overlap corner to
        their far edges. The crossing point minimizes the sum of both seams'
        cumulative costs.
        """
        o = self.overlap_size
        last = self.patch_size - 1
        left_finder = self._left_finder(cell, patch)
        top_finder = self._top_finder(cell, patch)

        # Both tables re-indexed as [y, x] over the overlap corner
        left_cost = left_finder.cost[::-1][:o, :o]
        top_cost = top_finder.cost[::-1][:o, :o].T
        combined = left_cost + top_cost
        cross_y, cross_x = np.unravel_index(int(np.argmin(combined)), combined.shape)
        cross_y, cross_x = int(cross_y), int(cross_x)

        mask = np.ones((self.patch_size, self.patch_size), dtype=bool)
        # Above-left of the crossing point both old neighbours are kept
        mask[:cross_y, :cross_x] = False
        self._apply_left_seam(mask,
                              left_finder.trace(last - cross_y, cross_x), start_y, start_x)
        self._apply_top_seam(mask,
                             top_finder.trace(last - cross_x, cross_y), start_y, start_x)
        return mask
