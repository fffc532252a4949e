"""Practice scheduling and ride group planning core.

Turns season rules into dated practices and splits attending riders and
coaches into supervised ride groups.
"""
