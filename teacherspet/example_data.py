"""
Example Assignment
==================
Two biology questions and two students, loaded by the "Load Example Data"
action so a teacher can try grading without preparing a roster.
"""

EXAMPLE_QUESTIONS = [
    {
        "id": "q1",
        "text": "Explain the process of photosynthesis.",
        "rubric": "The explanation should be clear, accurate, and mention the roles of sunlight, water, carbon dioxide, chlorophyll, and the production of glucose and oxygen. Grading is out of 10 points.",
        "keywords": "sunlight, water, carbon dioxide, chlorophyll, glucose, oxygen",
        "maxPoints": 10,
    },
    {
        "id": "q2",
        "text": "What is the primary function of the mitochondria in a cell?",
        "rubric": "The answer must state that mitochondria are responsible for generating most of the cell's supply of adenosine triphosphate (ATP), used as a source of chemical energy. Grading is out of 5 points.",
        "keywords": "ATP, energy, powerhouse, cellular respiration",
        "maxPoints": 5,
    },
]

EXAMPLE_STUDENTS = [
    {
        "id": "s1",
        "name": "Alice",
        "answers": [
            "Photosynthesis is how plants eat. They take in sunlight and water through their roots, and CO2 from the air. This happens in the leaves, which are green because of chlorophyll. The plant then makes sugar for food and releases oxygen for us to breathe.",
            "The mitochondria is the powerhouse of the cell, it makes energy.",
        ],
    },
    {
        "id": "s2",
        "name": "Bob",
        "answers": [
            "Plants use photosynthesis to make food from the sun. Chlorophyll is important. They take in CO2 and release O2.",
            "Mitochondria produce ATP through a process called cellular respiration, providing the main energy source for the cell.",
        ],
    },
]
