"""Core shared logic for SMC analysis, signal scoring, and signal lifecycle.

This package contains pure business logic with no I/O dependencies
(no database, network, or event loop). It is shared by the live
services in smc_app/ and by anything else that only needs analysis.
"""
