"""Services for the GL kernel (write side).

Import services from their modules; this package does not re-export them
so that gl_kernel.models can register SequenceCounter without a cycle.
"""
