"""Host adapters that execute work units on their own execution context."""
