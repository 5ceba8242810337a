import os
import sys

# 项目根目录加入 sys.path，测试可直接导入各模块
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from hypothesis import settings

# CI profile: more examples for thorough testing
settings.register_profile("ci", max_examples=200, deadline=None)
# Dev profile: fewer examples for faster iteration
settings.register_profile("dev", max_examples=50)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "dev"))
