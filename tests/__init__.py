# =============================================================================
# SUPERIOR SURF ENGINE - TEST SUITE
# =============================================================================
#
# Layout:
#   tests/
#     unit/           - one module per engine component
#     integration/    - full pipeline against the shipped configuration
#     mock_data.py    - observation and profile builders
#
# Usage:
#   pytest                       # all tests
#   python run_tests.py --quick  # smoke test only
#
# =============================================================================
