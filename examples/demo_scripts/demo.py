#!/usr/bin/env python3
"""
Demo script for visualdiff
Creates test images, compares them and writes the previews
"""

import json
from PIL import Image, ImageDraw

from visualdiff import ViewMode
from visualdiff.cli import compare_images, save_report, save_view

def create_test_images():
    """Create test images for demonstration"""

    print("Creating test images...")

    # Image 1: Original
    img1 = Image.new('RGB', (800, 600), color='white')
    draw = ImageDraw.Draw(img1)

    # Add gradient background
    for y in range(600):
        color = int(255 * (1 - y / 600))
        draw.rectangle([(0, y), (800, y+1)], fill=(color, color, 255))

    # Add some shapes
    draw.ellipse([100, 100, 300, 300], fill='red', outline='darkred', width=3)
    draw.rectangle([400, 200, 700, 400], fill='green', outline='darkgreen', width=3)
    draw.text((240, 500), "visualdiff Test Image", fill='white')

    img1.save('test_original.png')
    print("✓ Created test_original.png")

    # Image 2: Same layout at half size with a moved rectangle
    img2 = img1.resize((400, 300))
    draw2 = ImageDraw.Draw(img2)
    draw2.rectangle([200, 100, 350, 200], fill=(0, 0, 255))
    draw2.rectangle([180, 120, 330, 220], fill='green', outline='darkgreen', width=2)
    img2.save('test_modified.png')
    print("✓ Created test_modified.png (scaled down, rectangle moved)")

    return ['test_original.png', 'test_modified.png']

def print_report(title, report):
    diff = report.pixel_difference
    print(f"\n{title}:")
    print(f"  - Canvas: {report.canvas[0]}x{report.canvas[1]}")
    if not diff.ok:
        print(f"  - Error: {diff.error}")
        return
    print(f"  - Difference: {diff.percentage:.2f}%")
    print(f"  - Different pixels: {diff.different_pixels:,} / {diff.total_pixels:,}")
    print(f"  - Sampling factor: {diff.sampling_factor}")
    print(f"  - Status: {diff.status}")
    print(f"  - Top colors A: {', '.join(p.css for p in report.palette_a[:3])}")
    print(f"  - Top colors B: {', '.join(p.css for p in report.palette_b[:3])}")

def run_demo():
    """Run the visualdiff demonstration"""
    print("=" * 60)
    print("visualdiff - Demo")
    print("=" * 60)

    original, modified = create_test_images()

    print("\n" + "=" * 60)
    print("Step 1: Full comparison")
    print("=" * 60)

    session = compare_images(original, modified)
    report = session.to_report()
    save_report(report, 'comparison_full.json')
    print_report("Full comparison", report)

    print("\n" + "=" * 60)
    print("Step 2: Fast comparison")
    print("=" * 60)

    fast_session = compare_images(original, modified, fast=True)
    save_report(fast_session.to_report(), 'comparison_fast.json')
    print_report("Fast comparison", fast_session.to_report())

    print("\n" + "=" * 60)
    print("Step 3: Previews")
    print("=" * 60)

    save_view(session, ViewMode.DIFF, 'view_diff.png')
    save_view(session, ViewMode.SIDE_BY_SIDE, 'view_side_by_side.png')
    for ratio in (25, 50, 75):
        save_view(session, ViewMode.SLIDER, f'view_slider_{ratio}.png', ratio)

    with open('comparison_full.json', 'r') as f:
        saved = json.load(f)
    print(f"\nReport keys: {', '.join(saved['visual'])}")

    print("\n" + "=" * 60)
    print("Demo Complete!")
    print("=" * 60)
    print("\nGenerated files:")
    print("  - Test images: test_original.png, test_modified.png")
    print("  - Reports: comparison_full.json, comparison_fast.json")
    print("  - Previews: view_diff.png, view_side_by_side.png, view_slider_25/50/75.png")

if __name__ == '__main__':
    run_demo()
