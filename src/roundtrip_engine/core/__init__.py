"""Partition-and-verify engine.

Modules are imported directly (``roundtrip_engine.core.codec`` etc.); the
package itself stays import-free so ``config`` can depend on ``core.codec``.
"""
