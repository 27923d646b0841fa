"""
Módulo de caja (arqueo por turno).

- CashDrawer: apertura/cierre de la caja única del negocio
- get_shift: clasificación de turno (1 = día, 2 = noche)
"""
