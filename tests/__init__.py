"""
Test suite for the Growth Simulator.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_production_planner_service.py -v
"""
