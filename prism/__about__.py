__version__ = "1.0.0"
__description__ = "prism : hypermedia (HAL) REST endpoints over relational resources"
