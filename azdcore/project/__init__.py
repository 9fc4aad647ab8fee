"""Project file models, parsing, saving and lifecycle events."""