"""
Gizmo language front end.

- Lexer: tokenizes Gizmo source code
- Parser: produces an Abstract Syntax Tree from tokens
- AST: node definitions for the syntax tree
"""

from gizmo.compiler.ast_nodes import ASTNode, ASTVisitor, Expression, Program, Statement
from gizmo.compiler.lexer import Lexer, tokenize
from gizmo.compiler.parser import Parser, parse
from gizmo.compiler.tokens import KEYWORDS, Token, TokenType

__all__ = [
    "ASTNode",
    "ASTVisitor",
    "Expression",
    "KEYWORDS",
    "Lexer",
    "Parser",
    "Program",
    "Statement",
    "Token",
    "TokenType",
    "parse",
    "tokenize",
]
