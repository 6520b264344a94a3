"""Allow ``python -m accel_dra``."""

from accel_dra.cli import main

main()
