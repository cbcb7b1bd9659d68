"""Service layer: transfer engine, adapter sessions and job models.

Import submodules directly (``pte.services.transfer_service``); this
package deliberately re-exports nothing so ``pte.match`` can depend on
``pte.services.models`` without a cycle.
"""
