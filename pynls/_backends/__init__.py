"""
Backend selection and management.

Provides a unified interface for the NumPy Householder kernel and LAPACK.
"""

import warnings

from .base import BackendBase

# Pure NumPy kernel (always available)
try:
    from .householder_backend import HouseholderBackendFP64
    HOUSEHOLDER_AVAILABLE = True
except ImportError:
    HOUSEHOLDER_AVAILABLE = False
    warnings.warn("Householder backend unavailable - installation error!")

# Try importing LAPACK backend (SciPy)
try:
    from .cpu_fp64_backend import LapackBackendFP64
    LAPACK_AVAILABLE = True
except ImportError:
    LAPACK_AVAILABLE = False


def get_backend(backend='auto') -> BackendBase:
    """
    Get computational backend.

    Parameters
    ----------
    backend : str or BackendBase
        Backend selection:
        - 'auto': NumPy Householder kernel
        - 'householder': NumPy Householder kernel (FP64)
        - 'lapack': SciPy/LAPACK QR (FP64)
        A backend instance is returned unchanged.

    Returns
    -------
    BackendBase
        Backend instance

    Examples
    --------
    >>> # Default kernel
    >>> backend = get_backend('auto')

    >>> # LAPACK for large Jacobians
    >>> backend = get_backend('lapack')
    """
    if isinstance(backend, BackendBase):
        return backend

    if backend in ('auto', 'householder'):
        if not HOUSEHOLDER_AVAILABLE:
            raise RuntimeError("Householder backend unavailable!")
        return HouseholderBackendFP64()

    elif backend == 'lapack':
        if not LAPACK_AVAILABLE:
            raise RuntimeError(
                "LAPACK backend unavailable.\n"
                "Install: pip install scipy"
            )
        return LapackBackendFP64()

    else:
        raise ValueError(
            f"Unknown backend: '{backend}'\n"
            f"Valid options: 'auto', 'householder', 'lapack'"
        )


def list_available_backends() -> list:
    """List names of available backends."""
    backends = []
    if HOUSEHOLDER_AVAILABLE:
        backends.append('householder')
    if LAPACK_AVAILABLE:
        backends.append('lapack')
    return backends


def print_backend_info():
    """Print detailed backend information (diagnostic)."""
    print("PyNLS Backend Status")
    print("=" * 50)
    print(f"\nAvailable Backends:")
    print(f"  Householder (FP64): {'✓' if HOUSEHOLDER_AVAILABLE else '✗'} - NumPy Householder QR")
    print(f"  LAPACK (FP64):      {'✓' if LAPACK_AVAILABLE else '✗'} - SciPy LAPACK QR")

    print(f"\nRecommended Backend:")
    try:
        backend = get_backend('auto')
        print(f"  {backend.name}")
        for key, value in backend.get_device_info().items():
            print(f"    {key}: {value}")
    except Exception as e:
        print(f"  Error: {e}")


# Export main interface
__all__ = [
    'get_backend',
    'list_available_backends',
    'print_backend_info',
    'BackendBase',
    'HOUSEHOLDER_AVAILABLE',
    'LAPACK_AVAILABLE',
]


if __name__ == "__main__":
    print_backend_info()
