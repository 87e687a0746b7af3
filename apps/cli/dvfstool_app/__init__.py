"""dvfstool command-line application."""
