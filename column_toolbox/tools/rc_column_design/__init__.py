from .tool import TOOL
