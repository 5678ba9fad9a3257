"""
The STREAM layer turns the pure mesh generator into a timeline:
which tier is emitted on which frame, at what radius, and where it goes.
"""
