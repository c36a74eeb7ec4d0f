"""Command line entry points for calo-fit."""
