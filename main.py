"""
Main script for Image Quilting texture synthesis.
Usage: python main.py --input texture.jpg --output result.png
"""

import argparse
import os
import time

from quilter import (
    QuiltSynthesizer,
    draw_seams,
    load_texture,
    save_image,
    setup_logging,
    visualize_results,
)
from quilter.config import DEFAULT_OVERLAP_SIZE, DEFAULT_PATCH_SIZE, DEFAULT_TOLERANCE


def build_parser():
    parser = argparse.ArgumentParser(description='Image Quilting Texture Synthesis')
    parser.add_argument('--input', type=str, required=True, help='Input texture image path')
    parser.add_argument('--output', type=str, default='output.png', help='Output image path')
    parser.add_argument('--patch-size', type=int, default=DEFAULT_PATCH_SIZE, help='Patch size')
    parser.add_argument('--overlap-size', type=int, default=DEFAULT_OVERLAP_SIZE, help='Overlap size in pixels')
    parser.add_argument('--tolerance', type=float, default=DEFAULT_TOLERANCE, help='Error tolerance')
    parser.add_argument('--grayscale', action='store_true', help='Quilt the luminance plane only')
    parser.add_argument('--lateral-seams', action='store_true', help='Let seams move sideways within a row')
    parser.add_argument('--seam-borders', action='store_true',
                        help='Cut first-row/first-column patches along a seam too')
    parser.add_argument('--output-width', type=int, default=None, help='Output width')
    parser.add_argument('--output-height', type=int, default=None, help='Output height')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--workers', type=int, default=1, help='Processes for the patch search')
    parser.add_argument('--debug-dir', type=str, default=None,
                        help='Directory for the seed canvas, final canvas and seam overlay')
    parser.add_argument('--evaluate', action='store_true', help='Print quality metrics')
    parser.add_argument('--visualize', type=str, default=None,
                        help='Save a side-by-side comparison figure to this path')
    parser.add_argument('--log-level', type=str, default='INFO', help='Logging level')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    print(f"Loading texture from: {args.input}")
    try:
        input_texture = load_texture(args.input, grayscale=args.grayscale)
    except ValueError as e:
        print(f"Error loading texture: {e}")
        return 1

    print(f"Input texture shape: {input_texture.shape}")

    # Determine output size, default to 2x input size if not specified
    output_width = args.output_width if args.output_width is not None else input_texture.shape[1] * 2
    output_height = args.output_height if args.output_height is not None else input_texture.shape[0] * 2
    print(f"Requested output size: {output_width}x{output_height}")

    snapshot = None
    if args.debug_dir:
        def snapshot(stage, canvas):
            save_image(canvas, os.path.join(args.debug_dir, f"{stage}.png"))

    try:
        quilter = QuiltSynthesizer(
            input_texture,
            patch_size=args.patch_size,
            overlap_size=args.overlap_size,
            allow_lateral_seam_movement=args.lateral_seams,
            tolerance=args.tolerance,
            rng=args.seed,
            workers=args.workers,
            seam_border_cells=args.seam_borders,
            snapshot=snapshot,
        )

        print("Algorithm parameters:")
        print(f"  Patch size: {quilter.patch_size}")
        print(f"  Overlap: {quilter.overlap_size}")
        print(f"  Tolerance: {quilter.tolerance}")

        print("\nStarting texture synthesis...")
        start_time = time.time()
        result = quilter.synthesize(output_width, output_height)
        synthesis_time = time.time() - start_time
        print(f"Synthesis completed in {synthesis_time:.2f} seconds ({result.shape[1]}x{result.shape[0]})")

        save_image(result, args.output)
        print(f"Saved result to: {args.output}")

        if args.debug_dir:
            save_image(draw_seams(result, quilter.seams), os.path.join(args.debug_dir, "seams.png"))
            print(f"Saved diagnostics to: {args.debug_dir}")

    except ValueError as e:
        print(f"Error during synthesis: {e}")
        return 1

    if args.visualize:
        visualize_results(input_texture, result,
                          f"Image Quilting Results\nPatch: {args.patch_size}, Overlap: {args.overlap_size}",
                          save_path=args.visualize)
        print(f"Saved comparison to: {args.visualize}")

    if args.evaluate:
        from quilter.evaluation import evaluate_texture_quality
        quality = evaluate_texture_quality(input_texture, result)
        print(f"SSIM Score:           {quality['ssim']:.4f} (higher is better)")
        print(f"Histogram Distance:   {quality['histogram_distance']:.4f} (lower is better)")
        print(f"Edge Consistency:     {quality['edge_consistency']:.4f} (higher is better)")
        print(f"Overall Score:        {quality['overall_score']:.4f}")

    return 0

if __name__ == "__main__":
    import sys
    sys.exit(main())
