import sys
from pathlib import Path

import pytest

# 项目根目录加入 sys.path，测试直接导入 core / config
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.amortization import generate_amortization_schedule


@pytest.fixture
def schedule():
    """₹50L、9%、20 年的固定利率计划，多个测试共用"""
    return generate_amortization_schedule(5000000, 9, 20)
