# Operations the host forwards to the language server unchanged.
LSP_OPERATIONS: tuple[str, ...] = (
    "hover",
    "goToDefinition",
    "findReferences",
    "documentSymbol",
    "workspaceSymbol",
    "goToImplementation",
    "prepareCallHierarchy",
    "incomingCalls",
    "outgoingCalls",
)
