"""
connscope command line interface.
"""
