"""Package reserved for server communication; it holds no modules."""