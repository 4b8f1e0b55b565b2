"""Collection engine, identifier policy, codec and fluent builders."""
