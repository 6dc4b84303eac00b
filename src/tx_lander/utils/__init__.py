"""Utils for tx-lander."""

from .lamports import LAMPORTS_PER_SOL, lamports_to_sol, sol_to_lamports

__all__ = ['LAMPORTS_PER_SOL', 'lamports_to_sol', 'sol_to_lamports']
