"""Format-agnostic core: chart model, resource pool, errors, batch outcome.

WHY: Everything a bundle format needs to share lives here so each format
package only holds its own codec.

HOW: types.py defines the model, resource.py the content-addressed pool
and inflator, errors.py the exception taxonomy, batch.py the
skip-and-continue result type.

RULES:
- Nothing in core imports from univsrg.formats
- The pool is always passed explicitly; there is no module-level pool
"""
