from pathlib import Path

# 项目根目录（config 包的上一级）
PROJECT_ROOT = Path(__file__).resolve().parent.parent
