"""
Pure calculation engines.

Engines take plain values and return frozen results.  They hold no state,
read no clock and perform no I/O; services gather the inputs and persist
the outputs.
"""
