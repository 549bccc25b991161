"""
Completion item providers for the Gizmo LSP.

Offers:
- Keywords, with snippets for block forms
- Builtin functions and the animation calls
- Variables and generator bindings found in the document
"""

from lsprotocol import types

from gizmo.compiler.tokens import KEYWORDS
from gizmo.lsp.symbols import Symbol, SymbolKind
from gizmo.runtime.builtins import BUILTINS, BuiltinRegistry
from gizmo.runtime.interpreter import ANIMATION_CALLS

KEYWORD_SNIPPETS = {
    "frame": "frame ${1:name} = ${0:value}",
    "frames": "frames ${1:name} = [${0}]",
    "num": "num ${1:name} = ${0:0}",
    "text": 'text ${1:name} = "${0}"',
    "pattern": "pattern(${1:16}, ${2:16}) {\n\treturn ${0:row == col}\n}",
    "animate": "animate(${1:16}, ${2:16}) using ${3:t} {\n\treturn ${0:true}\n}",
    "evolve": "evolve(${1:16}, ${2:16}) from ${3:prev} {\n\t$0\n}",
    "if": "if ${1:condition} then\n\t$0\nend",
    "repeat": "repeat ${1:3} times do\n\t$0\nend",
    "when": "when ${1:clicked} do\n\t$0\nend",
}

ANIMATION_DESCRIPTIONS = {
    "play": "Play frames once and stop on the last one",
    "loop": "Play frames repeatedly",
    "play_speed": "Play frames once with a per-frame duration (1 to 10000 ms)",
    "loop_speed": "Loop frames with a per-frame duration (1 to 10000 ms)",
    "stop": "Pause the running animation",
    "add_frame": "Append a frame to a frames variable",
}


class CompletionProvider:
    """
    Provides completion items for the Gizmo LSP.

    Keyword and function items never change, so they are built once.
    """

    def __init__(self, builtins: BuiltinRegistry = BUILTINS) -> None:
        self._builtins = builtins
        self._keyword_completions: list[types.CompletionItem] | None = None
        self._function_completions: list[types.CompletionItem] | None = None

    def get_keyword_completions(self) -> list[types.CompletionItem]:
        if self._keyword_completions is not None:
            return self._keyword_completions

        completions: list[types.CompletionItem] = []
        for keyword in KEYWORDS:
            snippet = KEYWORD_SNIPPETS.get(keyword)
            if snippet:
                completions.append(
                    types.CompletionItem(
                        label=keyword,
                        kind=types.CompletionItemKind.Keyword,
                        insert_text=snippet,
                        insert_text_format=types.InsertTextFormat.Snippet,
                        detail="keyword",
                    )
                )
            else:
                completions.append(
                    types.CompletionItem(
                        label=keyword,
                        kind=types.CompletionItemKind.Keyword,
                        detail="keyword",
                    )
                )

        self._keyword_completions = completions
        return completions

    def get_function_completions(self) -> list[types.CompletionItem]:
        """Builtins plus the animation calls handled by the interpreter."""
        if self._function_completions is not None:
            return self._function_completions

        completions: list[types.CompletionItem] = []
        for name, signature in self._builtins.signatures().items():
            completions.append(self._function_item(name, signature, "builtin"))
        for name, signature in ANIMATION_CALLS.items():
            completions.append(
                self._function_item(name, signature, ANIMATION_DESCRIPTIONS.get(name, "animation"))
            )

        self._function_completions = completions
        return completions

    @staticmethod
    def _function_item(name: str, signature: str, description: str) -> types.CompletionItem:
        return types.CompletionItem(
            label=name,
            kind=types.CompletionItemKind.Function,
            detail=signature,
            documentation=types.MarkupContent(
                kind=types.MarkupKind.Markdown,
                value=f"**{name}**\n\n{description}\n\n```gizmo\n{signature}\n```",
            ),
            insert_text=f"{name}($0)",
            insert_text_format=types.InsertTextFormat.Snippet,
        )

    def get_symbol_completions(self, symbols: list[Symbol]) -> list[types.CompletionItem]:
        completions: list[types.CompletionItem] = []
        for symbol in symbols:
            if symbol.kind is SymbolKind.HANDLER:
                continue
            completions.append(
                types.CompletionItem(
                    label=symbol.name,
                    kind=types.CompletionItemKind.Variable,
                    detail=symbol.type_info or None,
                )
            )
        return completions

    def get_all_completions(self, symbols: list[Symbol]) -> list[types.CompletionItem]:
        completions: list[types.CompletionItem] = []
        completions.extend(self.get_symbol_completions(symbols))
        completions.extend(self.get_function_completions())
        completions.extend(self.get_keyword_completions())
        return completions
