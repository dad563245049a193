CSG_GRAMMAR = r"""
    start: _statement*

    _statement: binding
              | toplevel

    // -------------------------
    // Statements
    // -------------------------

    binding: "let" NAME "=" value ";"?
    toplevel: "toplevel" material "=" value ";"?

    material: NAME           -> material_name
            | SIGNED_INT     -> material_int
            | ESCAPED_STRING -> material_string

    // -------------------------
    // Expressions
    // -------------------------

    ?value: call
          | NAME          -> reference
          | SIGNED_NUMBER -> number
          | vector

    call: NAME "(" _values? ")"
    vector: "[" _values? "]"
    _values: value ("," value)*

    COMMENT: /#[^\n]*/

    %import common.CNAME -> NAME
    %import common.SIGNED_NUMBER
    %import common.SIGNED_INT
    %import common.ESCAPED_STRING
    %import common.WS
    %ignore WS
    %ignore COMMENT
"""

KEYWORDS = frozenset({'let', 'toplevel'})
