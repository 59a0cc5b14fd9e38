# -*- coding: utf-8 -*-
"""
Property-Based Tests für numerische Korrektheit.

Diese Tests validieren Invarianten von Codec und Partitionierung:
- Abdeckung des Index-Raums
- Monotonie und Konsistenz
- Determinismus
"""
