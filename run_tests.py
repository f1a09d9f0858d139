#!/usr/bin/env python
"""
Test runner script for the whole backend
Usage: python run_tests.py [app ...]
"""
import os
import sys
import django
from django.conf import settings
from django.test.utils import get_runner

APPS = [
    'archub.core',
    'archub.context',
    'archub.organizations',
    'archub.projects',
    'archub.contacts',
    'archub.library',
    'archub.budgets',
    'archub.sitelogs',
    'archub.finances',
    'archub.calendar',
]

if __name__ == "__main__":
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'archub.config.settings')
    django.setup()
    TestRunner = get_runner(settings)
    test_runner = TestRunner()
    failures = test_runner.run_tests(sys.argv[1:] or APPS)
    sys.exit(bool(failures))
