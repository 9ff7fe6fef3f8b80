"""IoT things, their properties and methods, and the manager that dispatches commands."""