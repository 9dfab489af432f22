"""
CLI entry point, when used as a module: `python -m kubestate`.
"""
from kubestate import cli

if __name__ == '__main__':
    cli.main()
