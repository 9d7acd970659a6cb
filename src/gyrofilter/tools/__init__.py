"""Command-line tools built on the filter engine.

:mod:`plotter` renders response curves, pipeline simulations and dynamic
notch placements with Matplotlib; it is the only module that draws anything.
"""
