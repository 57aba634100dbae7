"""Operations modules: file-level actions on the graph.

Each module contains plain functions that operate on a GraphState or
GraphStore.  The editor window wires these to toolbar buttons and handles
the dialogs and error reporting.
"""
