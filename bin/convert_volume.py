"""Script for converting a volume file from the command line."""

import argparse
import logging

from volconvert.convert import convert
from volconvert.core import get_config, get_log_level
from volconvert.dicom import write_dataset
from volconvert.layout import FrameOrder


parser = argparse.ArgumentParser(
    description="Convert an Analyze, NIfTI-1, NRRD or raw volume")

parser.add_argument("input", type=str,
                    help="Path to .hdr, .nii, .nii.gz, .nrrd, .nhdr or raw "
                    "file")
parser.add_argument("--description", "-d", type=str, metavar="JSON",
                    help="Raw image description (JSON file)")
parser.add_argument("--output", "-o", type=str, metavar="DCM",
                    help="Write a multi-frame DICOM file")
parser.add_argument("--frame_order", "-fo", type=str,
                    choices=[order.value for order in FrameOrder],
                    help="Frame order for NRRD files with several scalars "
                    "per voxel")
parser.add_argument("--modality", "-m", type=str,
                    help="Modality of output DICOM")
parser.add_argument("--patient_id", "-p", type=str, metavar="ID",
                    help="Patient ID of output DICOM")
parser.add_argument("-v", "--verbose", action="count", default=0,
                    help="More logging (-v for INFO, -vv for DEBUG)")

args = parser.parse_args()

# Set up logging
config = get_config()
level = get_log_level(config)
if args.verbose:
    level = min(level, logging.INFO if args.verbose == 1 else logging.DEBUG)
logging.basicConfig(level=level,
                    format="%(levelname)s %(name)s: %(message)s")

# Convert
result = convert(args.input, description=args.description,
                 frame_order=args.frame_order)
print(f"Source:     {result.source}")
print(f"Frames:     {result.number_of_frames} x {result.rows} x "
      f"{result.columns}")
print(f"Encoding:   {result.encoding.bits_allocated} bit, "
      f"{result.encoding.samples_per_pixel} sample(s), "
      f"{result.encoding.photometric_interpretation}")
geometry = result.geometry
if geometry is not None:
    print(f"Spacing:    {geometry.column_spacing}, {geometry.row_spacing}, "
          f"{geometry.slice_spacing}")
    print(f"Row:        {geometry.row_direction}")
    print(f"Column:     {geometry.column_direction}")
    print(f"Origin:     {geometry.frame_origin(0)}")
    codes = geometry.get_orientation_codes()
    print(f"Axes:       {''.join(str(c) for c in codes)}")
for warning in result.warnings:
    print(f"Warning:    {warning}")

# Write DICOM
if args.output:
    write_dataset(result, args.output, patient_id=args.patient_id,
                  modality=args.modality, config=config)
    print(f"Wrote {args.output}")
