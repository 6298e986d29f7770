import os

os.environ.setdefault("MPLBACKEND", "Agg") # experiments imports pyplot, no display in test runs
