import argparse
import os
import time
import warnings

from quilter import QuiltSynthesizer, OutputSizeWarning, load_texture, save_image, setup_logging
from quilter.config import DEFAULT_OVERLAP_SIZE, DEFAULT_PATCH_SIZE, DEFAULT_TOLERANCE, SUPPORTED_IMAGE_FORMATS


def main():
    parser = argparse.ArgumentParser(description='Batch process images for texture synthesis.')
    parser.add_argument('--data_dir', type=str, default='data',
                        help='Directory containing input texture images.')
    parser.add_argument('--results_dir', type=str, default='results_batch',
                        help='Directory to save synthesized textures.')

    # Algorithm parameters
    parser.add_argument('--output_width', type=int, default=512,
                        help='Width of the output synthesized texture.')
    parser.add_argument('--output_height', type=int, default=512,
                        help='Height of the output synthesized texture.')
    parser.add_argument('--patch_size', type=int, default=DEFAULT_PATCH_SIZE,
                        help='Patch size for image quilting.')
    parser.add_argument('--overlap_size', type=int, default=DEFAULT_OVERLAP_SIZE,
                        help='Overlap between patches in pixels.')
    parser.add_argument('--tolerance', type=float, default=DEFAULT_TOLERANCE,
                        help='Error tolerance for selecting matching patches.')
    parser.add_argument('--lateral_seams', action='store_true',
                        help='Let seams move sideways within a row.')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed shared by every texture.')
    parser.add_argument('--workers', type=int, default=1,
                        help='Processes for the patch search.')

    args = parser.parse_args()
    setup_logging("WARNING")

    # Validate data directory
    if not os.path.isdir(args.data_dir):
        print(f"Error: Data directory '{args.data_dir}' not found.")
        return 1

    os.makedirs(args.results_dir, exist_ok=True)
    print(f"Results will be saved in '{args.results_dir}'")

    image_files = sorted(
        os.path.join(args.data_dir, item) for item in os.listdir(args.data_dir)
        if item.lower().endswith(SUPPORTED_IMAGE_FORMATS)
    )

    if not image_files:
        print(f"No images found in '{args.data_dir}'.")
        return 1

    print(f"Found {len(image_files)} images to process.")

    total_start_time = time.time()
    failures = 0

    for i, img_path in enumerate(image_files):
        print(f"\nProcessing image {i+1}/{len(image_files)}: {img_path}")
        try:
            input_texture = load_texture(img_path)
            print(f"  Loaded input texture: {img_path} (Shape: {input_texture.shape})")

            quilter = QuiltSynthesizer(
                input_texture,
                patch_size=args.patch_size,
                overlap_size=args.overlap_size,
                allow_lateral_seam_movement=args.lateral_seams,
                tolerance=args.tolerance,
                rng=args.seed,
                workers=args.workers,
            )

            start_time = time.time()
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always", OutputSizeWarning)
                synthesized_texture = quilter.synthesize(args.output_width, args.output_height)
            for warning in caught:
                print(f"  Warning: {warning.message}")

            synthesis_time = time.time() - start_time
            print(f"  Synthesis completed in {synthesis_time:.2f} seconds.")

            base_name = os.path.basename(img_path)
            name, ext = os.path.splitext(base_name)
            height, width = synthesized_texture.shape[:2]
            output_filename = f"{name}_quilted_w{width}_h{height}_p{args.patch_size}{ext if ext else '.png'}"
            output_path = os.path.join(args.results_dir, output_filename)

            save_image(synthesized_texture, output_path)
            print(f"  Saved synthesized texture to: {output_path}")

        except ValueError as e:
            failures += 1
            print(f"  Error processing {img_path}: {e}")

    total_time = time.time() - total_start_time
    print(f"\nBatch processing completed in {total_time:.2f} seconds ({failures} failed).")
    return 1 if failures else 0

if __name__ == '__main__':
    import sys
    sys.exit(main())
