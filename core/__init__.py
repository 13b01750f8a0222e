"""
core/ - Core logic for the Shyam counselling backend
====================================================

This package contains the main components:
- vectorstore.py: Tokenizer, term-frequency index and retrieval
- safety.py: Emergency phrase detection and booking intent
- providers.py: Google, OpenAI and Hugging Face text generation
- router.py: Round-robin provider rotation with failover
- bookings.py: Booking request storage
- service.py: Service layer that orchestrates everything
"""
