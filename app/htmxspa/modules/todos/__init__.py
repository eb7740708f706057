"""
Todos module.

A todo is Active or Completed (toggle flips between them); delete removes it.
Every mutation answers with the changed item plus an out-of-band refresh of the
statistics panel, recomputed from the table on each call.
"""
