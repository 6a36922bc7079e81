# tests/conftest.py
#
# Puts the project root on sys.path so 'panel_cmdline' and 'main' import
# without installing the project.

import sys
import os

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)
